"""Approvals that only make sense on a Windows host."""

import sys

from command_gist import cmd_exe
from command_gist.intents import ListFiles, Read

# cmd.exe chaining, piping, redirection, escapes and variable expansion
CMD_METACHARS = set("&|<>^%\r\n")


def is_safe_command_windows(argv: list[str]) -> bool:
    """Approve `cmd /c type FILE` and `cmd /c dir ...` on Windows."""
    if sys.platform != "win32":
        return False
    parts = cmd_exe.split_invocation(argv)
    if parts is None:
        return False
    _, script = parts
    if CMD_METACHARS & set(script):
        return False
    words = script.lower().split()
    if not words or words[0] not in {"dir", "type"}:
        return False
    intents = cmd_exe.summarize(argv)
    return intents is not None and len(intents) == 1 and isinstance(intents[0], (Read, ListFiles))
