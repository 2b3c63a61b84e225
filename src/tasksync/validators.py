"""
Input validation for task mutations.

Each validator returns ``(is_valid, error_message)`` so callers can decide
whether a bad input is a silent no-op (the dispatcher) or a reported
validation error (the MCP tools).
"""


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Task text")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_task_text(
    text: str | None, max_size: int = 1_000_000
) -> tuple[bool, str]:
    """
    Validate the text of a new task.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot exceed max_size bytes once trimmed
    """
    if not text or not text.strip():
        return (
            False,
            format_validation_error("Task text", "cannot be empty"),
        )

    if len(text.strip().encode("utf-8")) > max_size:
        return (
            False,
            format_validation_error(
                "Task text", f"exceeds maximum size of {max_size} bytes"
            ),
        )

    return (True, "")


def validate_task_id(task_id: str | None) -> tuple[bool, str]:
    """
    Validate a task id before it is used to address a document.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot contain '/' (would address a different path)
    """
    if not task_id or not task_id.strip():
        return (False, format_validation_error("Task id", "cannot be empty"))

    if "/" in task_id:
        return (
            False,
            format_validation_error("Task id", "cannot contain '/'"),
        )

    return (True, "")
