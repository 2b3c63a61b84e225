"""MCP server exposing the task mirror over stdio."""
