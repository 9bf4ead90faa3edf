"""Comment thread errors.

Each error carries a stable ``code`` that the router maps to an HTTP status.
"""


class CommentError(Exception):
    """Base comment error."""

    def __init__(self, message: str, code: str = "comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class UnauthenticatedError(CommentError):
    """No requester identity."""

    def __init__(self, message: str = "Login required"):
        super().__init__(message, "unauthenticated")


class InvalidInputError(CommentError):
    """Malformed id, empty content, unknown emoji or a depth violation."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "invalid_input")


class CommentNotFoundError(CommentError):
    """A node on the addressed path does not exist."""

    def __init__(self, message: str = "Comment not found"):
        super().__init__(message, "comment_not_found")


class LessonNotFoundError(CommentError):
    """Lesson does not exist."""

    def __init__(self, message: str = "Lesson not found"):
        super().__init__(message, "lesson_not_found")


class PermissionDeniedError(CommentError):
    """Requester is not the author of the node."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied")


class ConcurrentModificationError(CommentError):
    """The thread kept changing underneath every write attempt."""

    def __init__(
        self, message: str = "Comment was modified concurrently, please retry"
    ):
        super().__init__(message, "concurrent_modification")


class RateLimitExceededError(CommentError):
    """Rate limit exceeded."""

    def __init__(self, message: str = "Too many comments, please slow down"):
        super().__init__(message, "rate_limit_exceeded")
