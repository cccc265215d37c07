"""SSM parameter path sanitization."""

import re

# One or more "/segment" groups; segments use the characters SSM allows
_PARAMETER_PATH_RE = re.compile(r"(/[A-Za-z0-9_.\-]+)+")


def sanitize_parameter_path(path: str) -> str | None:
    """
    Validate an SSM parameter path and normalize its trailing slash.

    Rules:
    - must start with "/"
    - a trailing "/" is stripped
    - must not be empty after stripping
    - must not contain "//" or characters outside [A-Za-z0-9_.-/]

    Examples:
        "/certs/" -> "/certs"
        "/certs/prod" -> "/certs/prod"
        "certs" -> None
        "/" -> None

    Args:
        path: Path as supplied in the configuration

    Returns:
        Normalized path, or None if the path is invalid
    """
    if not path.startswith("/"):
        return None

    if path.endswith("/"):
        path = path[:-1]

    if not _PARAMETER_PATH_RE.fullmatch(path):
        return None

    return path
