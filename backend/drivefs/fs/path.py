from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Union
from urllib.parse import parse_qs, quote, unquote, urlencode, urlsplit

from drivefs.fs.errors import (
    AmbiguousRelativizationError,
    IndexOutOfBoundsError,
    InvalidPathError,
    ProviderMismatchError,
    SchemeMismatchError,
    UnsupportedOperationError,
)

SCHEME = "drive"
SEPARATOR = "/"
# Drive's alias for the user's My Drive folder.
DEFAULT_ROOT = "root"
ACCOUNT_QUERY_KEY = "accountId"


def _escape_segment(segment: str) -> str:
    return segment.replace("\\", "\\\\").replace(SEPARATOR, "\\" + SEPARATOR)


def split_segments(chain: str) -> list[str]:
    """
    Split an escaped segment chain on unescaped separators.

    `\\/` is a literal slash inside a name and `\\\\` a literal backslash. Empty
    pieces from leading, trailing or doubled separators are dropped.
    """
    parts: list[str] = []
    cur: list[str] = []
    escaping = False
    for ch in chain:
        if escaping:
            cur.append(ch)
            escaping = False
        elif ch == "\\":
            escaping = True
        elif ch == SEPARATOR:
            parts.append("".join(cur))
            cur = []
        else:
            cur.append(ch)
    if escaping:
        cur.append("\\")
    parts.append("".join(cur))
    return [p for p in parts if p]


def join_segments(segments: tuple[str, ...]) -> str:
    return SEPARATOR.join(_escape_segment(s) for s in segments)


def _build_uri(authority: str, chain: Optional[str], account_id: Optional[str]) -> str:
    uri = f"{SCHEME}://{quote(authority, safe='')}"
    if chain is not None:
        uri += "/" + quote(chain, safe="/")
    if account_id is not None:
        uri += "?" + urlencode({ACCOUNT_QUERY_KEY: account_id})
    return uri


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


class _UriOrdered:
    """
    Total order over drive paths: the URI with the account query left out,
    compared as text. Paths that differ only by account compare equal here even
    though `==` tells them apart.
    """

    __slots__ = ()

    def to_uri(self, *, include_account: bool = True) -> str:
        raise NotImplementedError

    def _ordering_key(self) -> str:
        return self.to_uri(include_account=False)

    def compare_to(self, other: object) -> int:
        other_path = as_drive_path(other)
        a, b = self._ordering_key(), other_path._ordering_key()
        return (a > b) - (a < b)

    def __lt__(self, other: object) -> bool:
        if not is_drive_path(other):
            return NotImplemented
        return self._ordering_key() < other._ordering_key()

    def __le__(self, other: object) -> bool:
        if not is_drive_path(other):
            return NotImplemented
        return self._ordering_key() <= other._ordering_key()

    def __gt__(self, other: object) -> bool:
        if not is_drive_path(other):
            return NotImplemented
        return self._ordering_key() > other._ordering_key()

    def __ge__(self, other: object) -> bool:
        if not is_drive_path(other):
            return NotImplemented
        return self._ordering_key() >= other._ordering_key()

    def __str__(self) -> str:
        return self.to_uri()

    def __truediv__(self, other: object) -> DrivePath:
        return self.resolve(other)  # type: ignore[attr-defined]


@dataclass(frozen=True)
class NamedPath(_UriOrdered):
    """
    A chain of names below an optional root.

    `root_id` is "root" (My Drive), a folder or shared drive id, or None for a
    relative path.
    """

    root_id: Optional[str] = None
    segments: tuple[str, ...] = ()
    account_id: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.segments, str):
            raise InvalidPathError("segments must be a sequence of names, not a string")
        segments = tuple(self.segments)
        for s in segments:
            if not isinstance(s, str) or not s:
                raise InvalidPathError(f"Invalid path segment: {s!r}")
        object.__setattr__(self, "segments", segments)
        object.__setattr__(self, "root_id", _blank_to_none(self.root_id))
        object.__setattr__(self, "account_id", self.account_id or None)

    def is_absolute(self) -> bool:
        return self.root_id is not None

    @property
    def root(self) -> Optional[NamedPath]:
        if self.root_id is None:
            return None
        return replace(self, segments=())

    @property
    def parent(self) -> Optional[NamedPath]:
        if not self.segments:
            return None
        return replace(self, segments=self.segments[:-1])

    @property
    def file_name(self) -> Optional[NamedPath]:
        if not self.segments:
            return None
        return NamedPath(None, (self.segments[-1],), self.account_id)

    @property
    def name_count(self) -> int:
        return len(self.segments)

    def name_at(self, index: int) -> NamedPath:
        if index < 0 or index >= len(self.segments):
            raise IndexOutOfBoundsError(f"Name index {index} out of range for {len(self.segments)} segments")
        return NamedPath(None, (self.segments[index],), self.account_id)

    def subpath(self, begin: int, end: int) -> NamedPath:
        if begin < 0 or end > len(self.segments) or begin >= end:
            raise IndexOutOfBoundsError(f"Invalid subpath range [{begin}, {end}) for {len(self.segments)} segments")
        return NamedPath(None, self.segments[begin:end], self.account_id)

    def resolve(self, other: object) -> DrivePath:
        other_path = _coerce_resolvable(other)
        if other_path.is_absolute():
            return other_path
        if not other_path.segments:
            return self
        return replace(self, segments=self.segments + other_path.segments)

    def relativize(self, other: object) -> NamedPath:
        other_path = as_drive_path(other)
        if not isinstance(other_path, NamedPath):
            raise AmbiguousRelativizationError("Cannot relativize a named path against an identifier path")
        if other_path.root_id != self.root_id:
            raise AmbiguousRelativizationError(
                f"Paths have different roots: {self.root_id!r} and {other_path.root_id!r}"
            )
        mine = self.normalize().segments
        theirs = other_path.normalize().segments
        if theirs[: len(mine)] == mine:
            return NamedPath(None, theirs[len(mine) :], self.account_id)
        if mine[: len(theirs)] == theirs:
            return NamedPath(None, ("..",) * (len(mine) - len(theirs)), self.account_id)
        raise AmbiguousRelativizationError(f"Neither {self} nor {other_path} is a prefix of the other")

    def normalize(self) -> NamedPath:
        out: list[str] = []
        for s in self.segments:
            if s == ".":
                continue
            if s == "..":
                # nothing left to pop: the ".." is dropped
                if out:
                    out.pop()
                continue
            out.append(s)
        return replace(self, segments=tuple(out))

    def starts_with(self, other: object) -> bool:
        if not isinstance(other, NamedPath) or other.root_id != self.root_id:
            return False
        return self.segments[: len(other.segments)] == other.segments

    def ends_with(self, other: object) -> bool:
        if not isinstance(other, NamedPath):
            return False
        if other.is_absolute():
            return other.root_id == self.root_id and other.segments == self.segments
        n = len(other.segments)
        if n == 0:
            return not self.segments and not self.is_absolute()
        return n <= len(self.segments) and self.segments[-n:] == other.segments

    def to_absolute(self) -> NamedPath:
        if self.root_id is not None:
            return self
        return replace(self, root_id=DEFAULT_ROOT)

    def to_real_path(self) -> NamedPath:
        return self.to_absolute()

    def with_account(self, account_id: Optional[str]) -> NamedPath:
        return replace(self, account_id=account_id)

    def to_uri(self, *, include_account: bool = True) -> str:
        return _build_uri(
            self.root_id or "",
            join_segments(self.segments),
            self.account_id if include_account else None,
        )


@dataclass(frozen=True)
class IdentifierPath(_UriOrdered):
    """
    A single Drive object addressed by its file id. It has no name chain and is
    never extended in place.
    """

    identifier: str
    account_id: Optional[str] = None
    segments: tuple[str, ...] = field(default=(), compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.segments:
            raise UnsupportedOperationError("Identifier paths cannot carry name segments")
        object.__setattr__(self, "segments", ())
        if not isinstance(self.identifier, str) or not self.identifier.strip():
            raise InvalidPathError("Identifier paths require a non-blank identifier")
        object.__setattr__(self, "account_id", self.account_id or None)

    def is_absolute(self) -> bool:
        return True

    @property
    def root(self) -> IdentifierPath:
        return self

    @property
    def parent(self) -> Optional[NamedPath]:
        raise UnsupportedOperationError("Identifier paths have no parent")

    @property
    def file_name(self) -> None:
        return None

    @property
    def name_count(self) -> int:
        return 0

    def name_at(self, index: int) -> NamedPath:
        raise UnsupportedOperationError("Identifier paths have no name segments")

    def subpath(self, begin: int, end: int) -> NamedPath:
        raise UnsupportedOperationError("Identifier paths cannot be subdivided")

    def resolve(self, other: object) -> DrivePath:
        other_path = _coerce_resolvable(other)
        if other_path.is_absolute():
            return other_path
        if not other_path.segments:
            return self
        return NamedPath(self.identifier, other_path.segments, self.account_id)

    def relativize(self, other: object) -> NamedPath:
        other_path = as_drive_path(other)
        if isinstance(other_path, IdentifierPath) and other_path.identifier == self.identifier:
            return NamedPath(None, (), self.account_id)
        raise UnsupportedOperationError("Identifier paths only relativize against themselves")

    def normalize(self) -> IdentifierPath:
        return self

    def starts_with(self, other: object) -> bool:
        return isinstance(other, IdentifierPath) and other.identifier == self.identifier

    def ends_with(self, other: object) -> bool:
        return isinstance(other, IdentifierPath) and other.identifier == self.identifier

    def to_absolute(self) -> IdentifierPath:
        return self

    def to_real_path(self) -> IdentifierPath:
        return self

    def with_account(self, account_id: Optional[str]) -> IdentifierPath:
        return replace(self, account_id=account_id)

    def to_uri(self, *, include_account: bool = True) -> str:
        return _build_uri(self.identifier, None, self.account_id if include_account else None)


DrivePath = Union[NamedPath, IdentifierPath]


def is_drive_path(obj: object) -> bool:
    return isinstance(obj, (NamedPath, IdentifierPath))


def as_drive_path(obj: object) -> DrivePath:
    if isinstance(obj, (NamedPath, IdentifierPath)):
        return obj
    raise ProviderMismatchError(obj)


def _coerce_resolvable(other: object) -> DrivePath:
    if isinstance(other, str):
        if other.startswith(f"{SCHEME}:"):
            return parse_path(other)
        return NamedPath(None, tuple(split_segments(other)))
    return as_drive_path(other)


def parse_path(text: str) -> DrivePath:
    """
    Parse `drive://<root-or-id>/<escaped/segments>?accountId=<id>`.

    An empty path after the authority means an identifier path
    (`drive://<fileId>`); `drive://<rootId>/` is the root folder itself and
    `drive:///a/b` is a relative path.
    """
    try:
        parts = urlsplit(text)
    except ValueError as e:
        raise InvalidPathError(f"Invalid drive URI {text!r}: {e}") from e
    if parts.scheme != SCHEME:
        raise SchemeMismatchError(parts.scheme, expected=SCHEME)
    authority = unquote(parts.netloc)
    account_id = parse_qs(parts.query).get(ACCOUNT_QUERY_KEY, [None])[0]
    if not parts.path:
        if authority:
            return IdentifierPath(authority, account_id=account_id)
        return NamedPath(None, (), account_id)
    segments = split_segments(unquote(parts.path))
    return NamedPath(authority or None, tuple(segments), account_id)
