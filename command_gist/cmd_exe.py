"""Summaries of `cmd /c SCRIPT` invocations."""

from command_gist.intents import Intent, ListFiles, Read, Search, Unknown
from command_gist.powershell import ascii_lower, extract_filename
from command_gist.summary import short_display_path

CMD_EXES = {"cmd", "cmd.exe"}

# Switch sequences accepted before the script
PREFIX_SHAPES = [["/d", "/s", "/c"], ["/s", "/c"], ["/c"]]


def split_invocation(argv: list[str]) -> tuple[str, str] | None:
    """Return (prefix, script) for [cmd, (/d /s | /s)? /c, SCRIPT]."""
    if not argv or ascii_lower(argv[0]) not in CMD_EXES:
        return None
    for shape in PREFIX_SHAPES:
        if len(argv) == len(shape) + 2 and argv[1:-1] == shape:
            return " ".join(argv[:-1]), argv[-1]
    return None


def extract_query(script: str) -> str | None:
    """First non-empty quoted string after `findstr`."""
    idx = ascii_lower(script).find("findstr")
    if idx == -1:
        return None
    quote = None
    buf = []
    for ch in script[idx + len("findstr"):]:
        if quote is None:
            if ch in "'\"":
                quote = ch
        elif ch == quote:
            if buf:
                return "".join(buf)
            quote = None
        else:
            buf.append(ch)
    return None


def summarize(argv: list[str]) -> list[Intent] | None:
    """Summarize type / dir / findstr scripts; None if argv is not a cmd /c call."""
    parts = split_invocation(argv)
    if parts is None:
        return None
    prefix, script = parts
    cmd = f"{prefix} {script}"
    lower = ascii_lower(script)

    if lower.startswith("type ") or lower == "type":
        name = extract_filename(script)
        if name is not None:
            return [Read(cmd=cmd, name=short_display_path(name), path=name)]
    if lower.startswith("dir"):
        return [ListFiles(cmd=cmd)]
    if "findstr" in lower:
        return [Search(cmd=cmd, query=extract_query(script))]
    return [Unknown(cmd=cmd)]
