"""
Build the single stdin line for the pre-receive hook: "<commit_from> <commit_to> <branch>\n".
Fields with whitespace or control characters are rejected, never escaped.
"""
from typing import Any

from pushgate.hooks.errors import InvalidHookInput

HOOK_FIELDS = ("commit_from", "commit_to", "branch")


def _check_field(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidHookInput(name, str(value or ""), "must be a non-empty string")
    for ch in value:
        if ch.isspace():
            raise InvalidHookInput(name, value, "contains whitespace")
        if ord(ch) < 0x20 or ord(ch) == 0x7F:
            raise InvalidHookInput(name, value, "contains a control character")
    return value


def sanitize_input(action: Any) -> str:
    """Pure function of the action. Raises InvalidHookInput on unsafe values."""
    values = [_check_field(name, getattr(action, name, None)) for name in HOOK_FIELDS]
    return " ".join(values) + "\n"
