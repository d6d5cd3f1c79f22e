"""POSIX-style word splitting and quoting helpers."""

import shlex

NUL_PLACEHOLDER = "<command included NUL byte>"


def decode_args(argv: list[str | bytes], errors: str = "strict") -> list[str]:
    """Decode bytes elements as UTF-8; str elements pass through."""
    return [a.decode("utf-8", errors) if isinstance(a, bytes) else a for a in argv]


def try_shell_split(s: str) -> list[str] | None:
    """Split like a POSIX shell would, or None on unbalanced quotes."""
    try:
        return shlex.split(s)
    except ValueError:
        return None


def shell_split(s: str) -> list[str]:
    """Split like a POSIX shell would, falling back to whitespace split."""
    words = try_shell_split(s)
    if words is None:
        return s.split()
    return words


def shell_join(words: list[str]) -> str:
    """Join words into a display string, quoting where needed."""
    if any("\0" in w for w in words):
        return NUL_PLACEHOLDER
    return shlex.join(words)


def split_on_top_level(s: str, delims: str) -> list[str]:
    """Split s on any char of delims that sits outside '...' and "...".

    Segments are stripped; empty ones are dropped.
    """
    segments = []
    buf = []
    in_single = False
    in_double = False
    for ch in s:
        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch in delims and not in_single and not in_double:
            segment = "".join(buf).strip()
            if segment:
                segments.append(segment)
            buf = []
            continue
        buf.append(ch)
    segment = "".join(buf).strip()
    if segment:
        segments.append(segment)
    return segments


def find_unquoted(s: str, chars: str) -> int:
    """Return the index of the first char of chars outside quotes, or -1."""
    in_single = False
    in_double = False
    for i, ch in enumerate(s):
        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch in chars and not in_single and not in_double:
            return i
    return -1
