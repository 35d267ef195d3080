class WordyError(Exception):
    """Base exception for the vocabulary engine."""
    pass


class NotFoundError(WordyError):
    """Raised when operating on a word or grammar concept id that does not exist."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind} {item_id!r} not found")
        self.kind = kind
        self.item_id = item_id


class InvalidGradeError(WordyError, ValueError):
    """Raised when a review grade is not one of 1 (Again) .. 4 (Easy)."""
    pass


class DuplicateTextError(WordyError):
    """Raised when an insert collides with an existing normalized text."""

    def __init__(self, text: str):
        super().__init__(f"text {text!r} already exists")
        self.text = text


class StoreUnavailableError(WordyError):
    """Raised when the underlying store could not be opened or is busy."""
    pass


class MigrationFailedError(WordyError):
    """Raised when a schema step or the legacy import stops part way through."""

    def __init__(self, message: str, committed: int = 0):
        super().__init__(message)
        self.committed = committed
