"""Known-safe programs, per-program flag vetting and argv composition."""

from collections.abc import Callable

import re

# === Data: What commands are safe ===

SAFE_COMMANDS = {
    "cat", "cd", "echo", "false", "grep", "head", "ls", "nl", "pwd", "tail",
    "true", "wc", "which",
}

# Operators that may appear as literal argv tokens between commands
CONNECTORS = {"|", "&&", "||", ";"}

# Tokens that mean redirection, merge, backgrounding or grouping
UNSAFE_TOKENS = {">", ">>", "<", "|&", "&", "(", ")", "{", "}"}

SED_RANGE = re.compile(r"([0-9]+,)?[0-9]+p")

# === Custom validators ===


def check_find(tokens: list[str]) -> bool:
    """Approve find if no options that execute, delete or write files."""
    dangerous = {
        "-exec", "-execdir", "-ok", "-okdir", "-delete",
        "-fls", "-fprint", "-fprint0", "-fprintf",
    }
    if dangerous & set(tokens):
        return False
    return True


def check_rg(tokens: list[str]) -> bool:
    """Approve rg unless it would spawn helpers (--pre, --hostname-bin, -z)."""
    for t in tokens[1:]:
        if t in {"--search-zip", "-z"}:
            return False
        for flag in ("--pre", "--hostname-bin"):
            if t == flag or t.startswith(flag + "="):
                return False
    return True


def check_git(tokens: list[str]) -> bool:
    """Approve git for read-only subcommands."""
    return len(tokens) > 1 and tokens[1] in {"branch", "status", "log", "diff", "show"}


def check_cargo(tokens: list[str]) -> bool:
    """Approve cargo check."""
    return len(tokens) > 1 and tokens[1] == "check"


def check_bazel(tokens: list[str]) -> bool:
    """Approve bazel query commands and info."""
    return len(tokens) > 1 and tokens[1] in {"query", "aquery", "cquery", "info"}


def is_digits(s: str) -> bool:
    return s != "" and all(c in "0123456789" for c in s)


def is_valid_sed_n_arg(arg: str | None) -> bool:
    """Match print ranges such as "10p" or "1,200p"."""
    return arg is not None and SED_RANGE.fullmatch(arg) is not None


def _sed_flags_are_safe(tokens: list[str]) -> bool:
    """Vet sed flags; safe only if every flag is known and an expression was given."""
    saw_expression = False
    i = 1
    while i < len(tokens):
        t = tokens[i]
        if not t.startswith("-") or t == "-":
            i += 1
            continue
        if t.startswith("-i") or t.startswith("--in-place"):
            return False
        if t in {"-f", "--file"} or t.startswith("--file="):
            return False
        if t in {"-e", "--expression"}:
            if i + 1 >= len(tokens):
                return False
            saw_expression = True
            i += 2
            continue
        if t.startswith("--expression="):
            saw_expression = True
        elif t in {"-l", "--line-length"}:
            if i + 1 >= len(tokens) or not is_digits(tokens[i + 1]):
                return False
            i += 2
            continue
        elif t.startswith("--line-length="):
            if not is_digits(t.split("=", 1)[1]):
                return False
        elif t.startswith("--"):
            if t not in {"--quiet", "--silent", "--regexp-extended", "--unbuffered", "--null-data"}:
                return False
        elif not all(c in "nErusz" for c in t[1:]):
            return False
        i += 1
    return saw_expression


def check_sed(tokens: list[str]) -> bool:
    """Approve sed -n RANGE [FILE], or vetted flags with an explicit expression."""
    if len(tokens) in (3, 4) and tokens[1] == "-n" and is_valid_sed_n_arg(tokens[2]):
        return len(tokens) == 3 or tokens[3] != ""
    return _sed_flags_are_safe(tokens)


CUSTOM_CHECKS: dict[str, Callable[[list[str]], bool]] = {
    "bazel": check_bazel,
    "cargo": check_cargo,
    "find": check_find,
    "git": check_git,
    "rg": check_rg,
    "sed": check_sed,
}

# === Core safety check ===


def is_command_safe(tokens: list[str]) -> bool:
    """Check if a single command (as token list, no operators) is safe."""
    if not tokens:
        return False
    cmd = tokens[0]
    if cmd in SAFE_COMMANDS:
        return True
    if cmd in CUSTOM_CHECKS:
        return CUSTOM_CHECKS[cmd](tokens)
    return False


def split_on_connectors(tokens: list[str]) -> list[list[str]]:
    """Partition tokens at |, &&, || and ; tokens."""
    parts: list[list[str]] = [[]]
    for t in tokens:
        if t in CONNECTORS:
            parts.append([])
        else:
            parts[-1].append(t)
    return parts


def is_safe_to_exec(argv: list[str]) -> bool:
    """Check an argv that may carry literal pipeline or chain tokens."""
    if not argv:
        return False
    if any(t in UNSAFE_TOKENS or "`" in t for t in argv):
        return False
    if not CONNECTORS & set(argv):
        return is_command_safe(argv)
    parts = split_on_connectors(argv)
    return all(part and is_command_safe(part) for part in parts)
