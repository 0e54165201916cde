class TrctlError(Exception):
    pass


class ParseError(TrctlError):
    """Torrent metadata or a link could not be interpreted."""


class NoMatches(TrctlError):
    def __init__(self, message: str = "Nothing found") -> None:
        super().__init__(message)


class NothingToDo(TrctlError):
    """The operator declined; callers treat this as a successful no-op."""

    def __init__(self, message: str = "Nothing to do") -> None:
        super().__init__(message)


class InsufficientSpace(TrctlError):
    def __init__(self, message: str = "Not enough space") -> None:
        super().__init__(message)


class AggregateFailure(TrctlError):
    def __init__(self, count: int) -> None:
        super().__init__(f"Had {count} errors")
        self.count = count


class TransportError(TrctlError):
    pass


class IncompleteRecord(TrctlError):
    """A torrent record lacks a field the operation depends on."""
