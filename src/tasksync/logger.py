import json
import logging
import os
import sys

DEFAULT_LOG_FILE = "/tmp/tasksync.log"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "mcp")


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object.

    Keys: ``ts``, ``level``, ``logger``, ``msg``, plus ``exc`` when the
    record carries exception info.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _formatter(debug_format: str, with_name: bool) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    name = " %(name)s" if with_name else ""
    return logging.Formatter(
        f"[%(asctime)s] [%(levelname)s]{name} %(message)s",
        datefmt=_DATEFMT,
    )


def _resolve_level(mode: str, debug: bool, level: str | None) -> int:
    if debug:
        return logging.DEBUG
    fallback = level or ("WARNING" if mode == "mcp" else "INFO")
    name = os.getenv("LOG_LEVEL", fallback).upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(
    mode: str = "cli",
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Install root handlers for the given execution mode.

    In ``mcp`` mode stdout carries the protocol, so records go to a file
    only: *log_file*, else ``LOG_FILE``, else ``/tmp/tasksync.log``. In
    ``cli`` mode records go to stderr, and also to *log_file* when given.

    The level is DEBUG when *debug* is set, otherwise ``LOG_LEVEL``, then
    *level* (from the config file), then WARNING for mcp or INFO for cli.
    *debug_format* selects ``text`` or ``json`` output.
    """
    log_level = _resolve_level(mode, debug, level)

    # (handler, include logger name)
    targets: list[tuple[logging.Handler, bool]] = []
    if mode == "mcp":
        path = log_file or os.getenv("LOG_FILE", DEFAULT_LOG_FILE)
        targets.append((logging.FileHandler(path, mode="a"), True))
    else:
        targets.append((logging.StreamHandler(sys.stderr), False))
        if log_file:
            targets.append((logging.FileHandler(log_file, mode="a"), True))

    handlers: list[logging.Handler] = []
    for handler, with_name in targets:
        handler.setFormatter(_formatter(debug_format, with_name))
        handlers.append(handler)

    logging.basicConfig(level=log_level, handlers=handlers)

    if log_level != logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
