"""Exceptions raised by the relevance search core."""


class SearchableError(Exception):
    """Raised when a search cannot be built for the given query.

    Attributes:
        message: A human-readable description of the failure.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
