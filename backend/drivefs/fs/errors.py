from __future__ import annotations


class DriveFsError(RuntimeError):
    pass


class SchemeMismatchError(DriveFsError, ValueError):
    """
    Raised when a textual path does not use the `drive` scheme.
    """

    def __init__(self, scheme: str, *, expected: str = "drive"):
        self.scheme = scheme
        self.expected = expected
        super().__init__(f"Expected scheme '{expected}', got '{scheme or '(none)'}'")


class ProviderMismatchError(DriveFsError, TypeError):
    """
    Raised when an operation receives a value that is not a path of this filesystem.
    """

    def __init__(self, other: object):
        self.other = other
        super().__init__(f"Not a drive path: {type(other).__name__}")


class IndexOutOfBoundsError(DriveFsError, IndexError):
    pass


class UnsupportedOperationError(DriveFsError):
    pass


class AmbiguousRelativizationError(DriveFsError, ValueError):
    pass


class InvalidPathError(DriveFsError, ValueError):
    pass


class InvalidPatternError(DriveFsError, ValueError):
    pass


class UnknownAccountError(DriveFsError, LookupError):
    pass


class NoMoreElementsError(StopIteration):
    pass
