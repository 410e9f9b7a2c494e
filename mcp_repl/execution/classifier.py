"""
Source classification for the primary runtime.

Decides whether a snippet targets the CommonJS or the ES module system. The
check is a substring scan over a fixed marker set; markers inside comments or
string literals still count unless ``ignore_comments_and_strings`` is set,
in which case template interpolations are still treated as code.
"""

from enum import Enum


class SourceKind(str, Enum):
    """Module system a snippet is written for."""

    MODULE = "module"
    COMMONJS = "commonjs"


COMMONJS_MARKERS: tuple[str, ...] = (
    "require(",
    "module.exports",
    "__dirname",
    "__filename",
    "exports.",
)


def _blank(text: str) -> str:
    return "".join("\n" if c == "\n" else " " for c in text)


def blank_comments_and_strings(code: str) -> str:
    """
    Replace JavaScript comments and string/template literal bodies with spaces.

    Offsets and newlines are preserved. Template ``${...}`` interpolations are
    scanned as code. Regular expression literals are not recognised and are
    scanned as code.
    """
    out: list[str] = []
    # Brace depth of each open ``${`` interpolation, innermost last.
    interpolations: list[int] = []
    in_template = False
    i = 0
    n = len(code)
    while i < n:
        ch = code[i]
        nxt = code[i + 1] if i + 1 < n else ""

        if in_template:
            if ch == "`":
                out.append(ch)
                in_template = False
                i += 1
            elif ch == "\\":
                out.append(_blank(code[i : i + 2]))
                i += 2
            elif ch == "$" and nxt == "{":
                out.append("${")
                interpolations.append(0)
                in_template = False
                i += 2
            else:
                out.append(_blank(ch))
                i += 1
            continue

        if ch == "/" and nxt == "/":
            end = code.find("\n", i)
            end = n if end == -1 else end
            out.append(" " * (end - i))
            i = end
            continue

        if ch == "/" and nxt == "*":
            end = code.find("*/", i + 2)
            end = n if end == -1 else end + 2
            out.append(_blank(code[i:end]))
            i = end
            continue

        if ch in ("'", '"'):
            j = i + 1
            while j < n and code[j] != ch:
                if code[j] == "\\":
                    j += 1
                elif code[j] == "\n":
                    break
                j += 1
            end = min(j + 1, n)
            out.append(ch)
            out.append(_blank(code[i + 1 : end - 1]))
            if end - 1 > i:
                out.append(code[end - 1])
            i = end
            continue

        if ch == "`":
            in_template = True
        elif interpolations and ch == "{":
            interpolations[-1] += 1
        elif interpolations and ch == "}":
            if interpolations[-1] == 0:
                interpolations.pop()
                in_template = True
            else:
                interpolations[-1] -= 1

        out.append(ch)
        i += 1
    return "".join(out)


def classify_source(code: str, *, ignore_comments_and_strings: bool = False) -> SourceKind:
    """
    Classify a snippet as CommonJS or ES module source.

    Args:
        code: Source text to inspect
        ignore_comments_and_strings: Skip markers that only occur inside
            comments or string literals

    Returns:
        ``SourceKind.COMMONJS`` when any marker is present, else ``SourceKind.MODULE``
    """
    haystack = blank_comments_and_strings(code) if ignore_comments_and_strings else code
    if any(marker in haystack for marker in COMMONJS_MARKERS):
        return SourceKind.COMMONJS
    return SourceKind.MODULE
