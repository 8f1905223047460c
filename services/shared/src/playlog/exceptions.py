"""Engine error taxonomy."""


class PlaylogError(Exception):
    """Base exception for playlog engine errors."""


class CredentialUnavailableError(PlaylogError):
    """No valid upstream credential could be obtained."""


class StoreError(PlaylogError):
    """Reading from or writing to the event store failed."""


class MalformedImportError(PlaylogError):
    """An import payload is missing its header or contains unparseable rows."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
