from __future__ import annotations

import re
from functools import lru_cache

from drivefs.fs.errors import InvalidPatternError

# Regex metacharacters that are always emitted escaped.
_ALWAYS_ESCAPED = frozenset(".()+|^$@%")


def _strip_wildcards(glob: str) -> tuple[str, bool, bool]:
    """
    Remove one leading and one trailing `*`.
    Returns (body, had_leading, had_trailing).
    """
    leading = glob.startswith("*")
    if leading:
        glob = glob[1:]
    # "\*" at the end is a literal star, not a wildcard.
    trailing = glob.endswith("*") and not glob.endswith("\\*")
    if trailing:
        glob = glob[:-1]
    return glob, leading, trailing


def _translate(body: str) -> str:
    out: list[str] = []
    escaping = False
    depth = 0
    for ch in body:
        if ch == "*":
            out.append("\\*" if escaping else ".*")
            escaping = False
        elif ch == "?":
            out.append("\\?" if escaping else ".")
            escaping = False
        elif ch in _ALWAYS_ESCAPED:
            out.append("\\" + ch)
            escaping = False
        elif ch == "\\":
            if escaping:
                out.append("\\\\")
                escaping = False
            else:
                escaping = True
        elif ch == "{":
            if escaping:
                out.append("\\{")
            else:
                out.append("(")
                depth += 1
            escaping = False
        elif ch == "}":
            if escaping:
                out.append("\\}")
            elif depth > 0:
                out.append(")")
                depth -= 1
            else:
                out.append("}")
            escaping = False
        elif ch == ",":
            if escaping:
                out.append("\\,")
            elif depth > 0:
                out.append("|")
            else:
                out.append(",")
            escaping = False
        else:
            escaping = False
            out.append(ch)
    # close groups left open so the output still compiles
    out.append(")" * depth)
    return "".join(out)


def glob_to_regex(glob: str) -> str:
    """
    Translate a glob into a regular expression string.

    Supports `*`, `?`, `{a,b}` alternation and backslash escapes. One leading and
    one trailing `*` are dropped from the translation; `compile_glob` puts them
    back as unanchored `.*` so the pattern can be used with `fullmatch`.
    """
    body, _leading, _trailing = _strip_wildcards(glob)
    return _translate(body)


@lru_cache(maxsize=256)
def compile_glob(glob: str) -> re.Pattern[str]:
    body, leading, trailing = _strip_wildcards(glob)
    regex = ("(?:.*)" if leading else "") + _translate(body) + ("(?:.*)" if trailing else "")
    try:
        return re.compile(regex, re.DOTALL)
    except re.error as e:
        raise InvalidPatternError(f"Invalid glob {glob!r}: {e}") from e


def glob_matches(glob: str, text: str) -> bool:
    return compile_glob(glob).fullmatch(text) is not None
