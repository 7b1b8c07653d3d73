"""Safe error message formatting utilities.

Ensures exceptions always have useful display messages, even when
their str() representation is empty, and that dynamic text such as
customizer labels (``[Size]``) or paths is not parsed as Rich markup.
"""

from __future__ import annotations

from rich.markup import escape as _escape_markup

from ..lib.flattening.models import Diagnostic


# Friendly messages for exception types that often carry no message
FRIENDLY_MESSAGES: dict[type, str] = {
    PermissionError: "Permission denied.",
    FileNotFoundError: "File not found.",
    IsADirectoryError: "Expected a file but found a directory.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a useful display message.

    Args:
        e: The exception to format
        include_type: Whether to include the exception type name

    Returns:
        A non-empty, user-friendly error message

    Examples:
        >>> format_error_message(ValueError("invalid input"))
        'ValueError: invalid input'

        >>> format_error_message(ValueError("invalid input"), include_type=False)
        'invalid input'

        >>> format_error_message(PermissionError())
        'PermissionError: Permission denied.'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}"

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings.

    Args:
        value: Any value to escape (will be converted to str)

    Returns:
        String safe for interpolation into Rich markup f-strings
    """
    return _escape_markup(str(value))


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """One-line display form of a flattening diagnostic, e.g. ``recursion limit: too deep``."""
    return f"{diagnostic.kind.value.replace('_', ' ')}: {diagnostic.message}"
