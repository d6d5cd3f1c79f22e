"""The safety gate: may this argv run without asking the user?"""

from command_gist import bash, powershell
from command_gist.allowlist import is_command_safe, is_safe_to_exec
from command_gist.shell_words import decode_args
from command_gist.windows import is_safe_command_windows


def is_known_safe(argv: list[str | bytes]) -> bool:
    """True only for commands that provably cannot modify anything.

    Unknown programs, unknown flags, parse failures and undecodable bytes
    all answer False.
    """
    try:
        words = decode_args(argv)
    except UnicodeDecodeError:
        return False
    if not words:
        return False

    if is_safe_command_windows(words):
        return True
    if is_safe_to_exec(words):
        return True

    script = bash.split_lc_invocation(words)
    if script is not None:
        commands = bash.parse_bash_lc_plain_commands(words)
        if commands and all(is_command_safe(c) for c in commands):
            return True
        return bash.is_bash_read_only_with_assignments(script)

    script = powershell.extract_script(words)
    if script is not None:
        return powershell.is_read_only_script(script)
    return False
