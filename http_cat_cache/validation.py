"""Request path validation."""

import re

STATUS_CODE_PATTERN = re.compile(r"^\d{3}$")
STATUS_PATH_PATTERN = re.compile(r"^/(\d{3})$")


class InvalidStatusCodeError(ValueError):
    """Raised when a request target is not '/' followed by exactly 3 digits."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Invalid request target: {target!r}")


def is_status_code(value: str) -> bool:
    """Return True if value is exactly 3 ASCII digits."""
    # re's \d matches any Unicode digit
    return bool(STATUS_CODE_PATTERN.fullmatch(value)) and value.isascii()


def parse_status_code(path: str, query: str = "") -> str:
    """Extract the status code from a request target.

    Args:
        path: URL path of the request, e.g. ``/404``.
        query: Raw query string; any query makes the target invalid.

    Returns:
        str: The 3-digit status code.

    Raises:
        InvalidStatusCodeError: If the target does not match ``/<3 digits>``.
    """
    target = f"{path}?{query}" if query else path
    match = STATUS_PATH_PATTERN.fullmatch(target)
    if match is None or not match.group(1).isascii():
        raise InvalidStatusCodeError(target)
    return match.group(1)
