from __future__ import annotations

import dataclasses
from pathlib import PurePosixPath

import pytest

from drivefs.fs.errors import (
    AmbiguousRelativizationError,
    IndexOutOfBoundsError,
    InvalidPathError,
    ProviderMismatchError,
    SchemeMismatchError,
    UnsupportedOperationError,
)
from drivefs.fs.path import (
    DEFAULT_ROOT,
    IdentifierPath,
    NamedPath,
    parse_path,
    split_segments,
)


def named(*segments: str, root: str | None = "root", account: str | None = None) -> NamedPath:
    return NamedPath(root, segments, account)


class TestEncoding:
    def test_absolute_named_path(self) -> None:
        assert named("a", "b").to_uri() == "drive://root/a/b"

    def test_account_is_a_query_parameter(self) -> None:
        assert named("a", account="work").to_uri() == "drive://root/a?accountId=work"

    def test_root_only_path_keeps_trailing_slash(self) -> None:
        assert named().to_uri() == "drive://root/"

    def test_relative_path_has_empty_authority(self) -> None:
        assert named("a", "b", root=None).to_uri() == "drive:///a/b"

    def test_identifier_path_has_no_path_component(self) -> None:
        assert IdentifierPath("1AbCfileId").to_uri() == "drive://1AbCfileId"

    def test_separator_inside_name_is_escaped(self) -> None:
        p = named("reports", "Q1/Q2")
        assert p.to_uri() == "drive://root/reports/Q1%5C/Q2"
        assert parse_path(p.to_uri()).segments == ("reports", "Q1/Q2")

    def test_str_is_the_uri(self) -> None:
        p = named("a", account="work")
        assert str(p) == p.to_uri()

    def test_include_account_false(self) -> None:
        assert named("a", account="work").to_uri(include_account=False) == "drive://root/a"


class TestParsing:
    def test_named_path(self) -> None:
        assert parse_path("drive://root/a/b") == named("a", "b")

    def test_identifier_path(self) -> None:
        assert parse_path("drive://1AbCfileId") == IdentifierPath("1AbCfileId")

    def test_root_only(self) -> None:
        assert parse_path("drive://0AteamDrive/") == NamedPath("0AteamDrive")

    def test_relative(self) -> None:
        p = parse_path("drive:///a/b")
        assert p == named("a", "b", root=None)
        assert not p.is_absolute()

    def test_account(self) -> None:
        assert parse_path("drive://root/a?accountId=work").account_id == "work"
        assert parse_path("drive://fid?accountId=work") == IdentifierPath("fid", account_id="work")

    def test_empty_segments_are_dropped(self) -> None:
        assert parse_path("drive://root//a///b/").segments == ("a", "b")

    def test_wrong_scheme(self) -> None:
        with pytest.raises(SchemeMismatchError):
            parse_path("https://root/a")
        with pytest.raises(SchemeMismatchError):
            parse_path("root/a")

    def test_scheme_mismatch_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_path("file:///tmp/x")

    def test_malformed_authority(self) -> None:
        with pytest.raises(InvalidPathError, match="Invalid drive URI"):
            parse_path("drive://[x/a")

    def test_split_segments_honours_escapes(self) -> None:
        assert split_segments(r"a\/b/c") == ["a/b", "c"]
        assert split_segments(r"a\\/b") == ["a\\", "b"]
        assert split_segments("/a//b/") == ["a", "b"]


@pytest.mark.parametrize(
    "path",
    [
        named(),
        named("a", "b", "c"),
        named("a", root=None),
        NamedPath(None),
        named("Q1/Q2", "back\\slash", "trailing\\"),
        named("résumé", "50% off?", "#tag", "a b", account="user@example.com"),
        NamedPath("0AteamDrive", ("x",), "work"),
        IdentifierPath("1AbCfileId"),
        IdentifierPath("1AbCfileId", account_id="work"),
        IdentifierPath("odd/id"),
    ],
)
def test_round_trip(path) -> None:
    uri = path.to_uri()
    assert parse_path(uri) == path
    assert parse_path(uri).to_uri() == uri


class TestConstruction:
    def test_blank_root_is_relative(self) -> None:
        p = NamedPath("  ", ("a",))
        assert p.root_id is None
        assert not p.is_absolute()

    def test_empty_segment_rejected(self) -> None:
        with pytest.raises(InvalidPathError):
            NamedPath("root", ("a", ""))

    def test_string_segments_rejected(self) -> None:
        with pytest.raises(InvalidPathError):
            NamedPath("root", "abc")  # type: ignore[arg-type]

    def test_list_segments_become_tuple(self) -> None:
        assert NamedPath("root", ["a", "b"]).segments == ("a", "b")  # type: ignore[arg-type]

    def test_identifier_requires_identifier(self) -> None:
        with pytest.raises(InvalidPathError):
            IdentifierPath(" ")

    def test_identifier_with_segments_is_unsupported(self) -> None:
        with pytest.raises(UnsupportedOperationError):
            IdentifierPath("fid", segments=("a",))

    def test_paths_are_immutable(self) -> None:
        p = named("a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.root_id = "other"  # type: ignore[misc]


class TestEquality:
    def test_account_participates(self) -> None:
        assert named("a", account="x") != named("a", account="y")
        assert named("a", account="x") == named("a", account="x")

    def test_variants_differ(self) -> None:
        assert NamedPath("fid") != IdentifierPath("fid")

    def test_hashable(self) -> None:
        assert len({named("a"), named("a"), IdentifierPath("a")}) == 2


class TestOrdering:
    def test_account_is_ignored(self) -> None:
        a = named("a", account="x")
        b = named("a", account="y")
        assert a.compare_to(b) == 0
        assert not a < b and not b < a
        assert a <= b and a >= b

    def test_total_order_follows_uri(self) -> None:
        paths = [named("b"), IdentifierPath("abc"), named("a"), named("a", root=None)]
        assert sorted(paths) == [named("a", root=None), IdentifierPath("abc"), named("a"), named("b")]
        assert named("a").compare_to(named("b")) == -1
        assert named("b").compare_to(named("a")) == 1

    def test_compare_with_foreign_object(self) -> None:
        with pytest.raises(ProviderMismatchError):
            named("a").compare_to(PurePosixPath("a"))
        with pytest.raises(TypeError):
            _ = named("a") < "a"  # type: ignore[operator]


class TestNavigation:
    def test_is_absolute(self) -> None:
        assert named("a").is_absolute()
        assert not named("a", root=None).is_absolute()
        assert IdentifierPath("fid").is_absolute()

    def test_root(self) -> None:
        assert named("a", "b", account="w").root == named(account="w")
        assert named("a", root=None).root is None
        fid = IdentifierPath("fid")
        assert fid.root is fid

    def test_parent(self) -> None:
        assert named("a", "b").parent == named("a")
        assert named("a").parent == named()
        assert named().parent is None
        assert named("a", root=None).parent == NamedPath(None)
        assert NamedPath(None).parent is None

    def test_file_name(self) -> None:
        assert named("a", "b", account="w").file_name == NamedPath(None, ("b",), "w")
        assert named().file_name is None
        assert IdentifierPath("fid").file_name is None

    def test_name_at(self) -> None:
        p = named("a", "b", "c")
        assert p.name_count == 3
        assert p.name_at(1) == NamedPath(None, ("b",))
        with pytest.raises(IndexOutOfBoundsError):
            p.name_at(3)
        with pytest.raises(IndexError):
            p.name_at(-1)

    def test_subpath(self) -> None:
        p = named("a", "b", "c", "d")
        assert p.subpath(1, 3) == NamedPath(None, ("b", "c"))
        assert p.subpath(0, 4) == NamedPath(None, ("a", "b", "c", "d"))
        for begin, end in ((2, 2), (3, 1), (-1, 2), (0, 5)):
            with pytest.raises(IndexOutOfBoundsError):
                p.subpath(begin, end)

    def test_to_absolute(self) -> None:
        assert named("a", root=None).to_absolute() == NamedPath(DEFAULT_ROOT, ("a",))
        p = NamedPath("0AteamDrive", ("a",))
        assert p.to_absolute() is p
        assert p.to_real_path() is p
        fid = IdentifierPath("fid")
        assert fid.to_absolute() is fid

    def test_with_account(self) -> None:
        assert named("a").with_account("w") == named("a", account="w")
        assert IdentifierPath("fid").with_account("w").account_id == "w"


class TestIdentifierRestrictions:
    def test_parent_unsupported(self) -> None:
        with pytest.raises(UnsupportedOperationError):
            _ = IdentifierPath("fid").parent

    def test_subpath_unsupported(self) -> None:
        with pytest.raises(UnsupportedOperationError):
            IdentifierPath("fid").subpath(0, 1)

    def test_name_at_unsupported(self) -> None:
        with pytest.raises(UnsupportedOperationError):
            IdentifierPath("fid").name_at(0)

    def test_name_count_is_zero(self) -> None:
        assert IdentifierPath("fid").name_count == 0
        assert IdentifierPath("fid").segments == ()

    def test_normalize_is_identity(self) -> None:
        fid = IdentifierPath("fid")
        assert fid.normalize() is fid


class TestResolve:
    def test_absolute_other_wins(self) -> None:
        other = NamedPath("0AteamDrive", ("x",))
        assert named("a").resolve(other) is other
        fid = IdentifierPath("fid")
        assert named("a").resolve(fid) is fid

    def test_relative_other_is_appended(self) -> None:
        assert named("a", account="w").resolve(NamedPath(None, ("b", "c"))) == named("a", "b", "c", account="w")

    def test_empty_relative_returns_self(self) -> None:
        p = named("a")
        assert p.resolve(NamedPath(None)) is p

    def test_string_argument(self) -> None:
        assert named("a").resolve("b/c") == named("a", "b", "c")
        assert named("a").resolve(r"b\/c") == named("a", "b/c")
        assert named("a").resolve("drive://fid") == IdentifierPath("fid")

    def test_division_operator(self) -> None:
        assert named("a") / "b" / NamedPath(None, ("c",)) == named("a", "b", "c")

    def test_identifier_base(self) -> None:
        assert IdentifierPath("folderId", account_id="w").resolve("a/b") == NamedPath("folderId", ("a", "b"), "w")
        fid = IdentifierPath("fid")
        assert fid.resolve("") is fid

    def test_foreign_path(self) -> None:
        with pytest.raises(ProviderMismatchError):
            named("a").resolve(PurePosixPath("b"))
        with pytest.raises(ProviderMismatchError):
            IdentifierPath("fid").resolve(42)


class TestRelativize:
    def test_prefix(self) -> None:
        assert named("a").relativize(named("a", "b", "c")) == NamedPath(None, ("b", "c"))

    def test_equal_paths(self) -> None:
        assert named("a", "b").relativize(named("a", "b")) == NamedPath(None)

    def test_uses_normalized_segments(self) -> None:
        assert named("a", "x", "..").relativize(named("a", ".", "b")) == NamedPath(None, ("b",))

    def test_descendant_to_ancestor(self) -> None:
        assert named("a", "b", "c").relativize(named("a")) == NamedPath(None, ("..", ".."))

    def test_relative_paths(self) -> None:
        assert named("a", root=None).relativize(named("a", "b", root=None)) == NamedPath(None, ("b",))

    def test_different_roots(self) -> None:
        with pytest.raises(AmbiguousRelativizationError):
            named("a").relativize(NamedPath("0AteamDrive", ("a", "b")))
        with pytest.raises(AmbiguousRelativizationError):
            named("a").relativize(named("a", "b", root=None))

    def test_siblings(self) -> None:
        with pytest.raises(AmbiguousRelativizationError):
            named("a", "b").relativize(named("a", "c"))

    def test_named_against_identifier(self) -> None:
        with pytest.raises(AmbiguousRelativizationError):
            named("a").relativize(IdentifierPath("fid"))

    def test_identifier(self) -> None:
        assert IdentifierPath("fid").relativize(IdentifierPath("fid")) == NamedPath(None)
        with pytest.raises(UnsupportedOperationError):
            IdentifierPath("fid").relativize(IdentifierPath("other"))
        with pytest.raises(UnsupportedOperationError):
            IdentifierPath("fid").relativize(named("a"))

    def test_foreign_path(self) -> None:
        with pytest.raises(ProviderMismatchError):
            named("a").relativize("a/b")

    @pytest.mark.parametrize(
        "a, b",
        [
            (named(), named("x")),
            (named("a"), named("a", "b", "c")),
            (named("a", "b"), named("a", "b")),
            (NamedPath("0AteamDrive", ("p",), "w"), NamedPath("0AteamDrive", ("p", "q"), "w")),
        ],
    )
    def test_resolve_inverts_relativize(self, a: NamedPath, b: NamedPath) -> None:
        assert a.resolve(a.relativize(b)) == b


class TestNormalize:
    def test_dot_and_dotdot(self) -> None:
        assert named("a", ".", "b", "..", "c").normalize() == named("a", "c")

    def test_dotdot_above_root_is_dropped(self) -> None:
        assert named("..", "a").normalize() == named("a")
        assert named("a", "..", "..", "b").normalize() == named("b")
        assert named("..", root=None).normalize() == NamedPath(None)

    def test_keeps_root_and_account(self) -> None:
        assert NamedPath("0AteamDrive", ("a", ".."), "w").normalize() == NamedPath("0AteamDrive", (), "w")

    @pytest.mark.parametrize(
        "segments",
        [(), ("a",), (".", "."), ("..", "..", "a"), ("a", "b", "..", ".", "c", "..", "..", "d")],
    )
    def test_idempotent(self, segments: tuple[str, ...]) -> None:
        once = named(*segments).normalize()
        assert once.normalize() == once


class TestPrefixSuffix:
    def test_starts_with(self) -> None:
        p = named("a", "b", "c")
        assert p.starts_with(named())
        assert p.starts_with(named("a", "b"))
        assert not p.starts_with(named("b"))
        assert not p.starts_with(named("a", root=None))
        assert not p.starts_with("drive://root/a")

    def test_starts_with_is_not_normalized(self) -> None:
        assert not named("a", ".", "b").starts_with(named("a", "b"))

    def test_ends_with_relative(self) -> None:
        p = named("a", "b", "c")
        assert p.ends_with(named("b", "c", root=None))
        assert p.ends_with(named("a", "b", "c", root=None))
        assert not p.ends_with(named("a", "b", root=None))
        assert not p.ends_with(named("x", "a", "b", "c", root=None))
        assert not p.ends_with(NamedPath(None))
        assert NamedPath(None).ends_with(NamedPath(None))

    def test_ends_with_absolute(self) -> None:
        p = named("a", "b")
        assert p.ends_with(named("a", "b"))
        assert not p.ends_with(named("b"))
        assert not p.ends_with(NamedPath("0AteamDrive", ("a", "b")))

    def test_identifier(self) -> None:
        fid = IdentifierPath("fid")
        assert fid.starts_with(IdentifierPath("fid", account_id="w"))
        assert fid.ends_with(IdentifierPath("fid"))
        assert not fid.starts_with(IdentifierPath("other"))
        assert not fid.ends_with(NamedPath("fid"))
        assert not named("a").ends_with(fid)
