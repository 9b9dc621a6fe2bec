class JsonPathError(Exception):
    """Base class for failures raised by the path-query layer."""


class InvalidPathError(JsonPathError):
    """The path string is not a valid path-query expression."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Invalid path: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class PathNotFoundError(InvalidPathError):
    """
    The path is well formed but does not resolve in the document.
    Subclasses InvalidPathError so handlers for unreadable paths also cover absent ones.
    """

    def __init__(self, path: str):
        super().__init__(path, "no results")

    def __str__(self):
        return f"No results for path: {self.path}"


class MalformedJsonError(JsonPathError):
    """The payload or a replacement value could not be parsed as JSON."""

    def __init__(self, text, cause: Exception = None):
        self.text = text
        self.cause = cause
        super().__init__(f"Could not parse JSON: {cause}" if cause else "Could not parse JSON")
