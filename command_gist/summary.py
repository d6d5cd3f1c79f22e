"""Per-program summaries of word-only commands, and the simplifier that tidies them."""

from collections.abc import Callable

import posixpath

from command_gist.allowlist import CONNECTORS, is_valid_sed_n_arg
from command_gist.intents import Intent, ListFiles, Read, Search, Unknown
from command_gist.shell_words import shell_join, try_shell_split

# Path segments that say nothing about what is being looked at
NOISE_SEGMENTS = {"build", "dist", "node_modules", "src"}

# Commands that only reshape the output of the command before them
FORMATTING_COMMANDS = {
    "wc", "tr", "cut", "sort", "uniq", "xargs", "tee", "column", "awk", "yes",
    "printf",
}

LS_FLAGS_WITH_VALUE = {"-I", "-w", "--block-size", "--format", "--time-style", "--color", "--quoting-style"}
RG_FLAGS_WITH_VALUE = {"-g", "--glob"}
FD_FLAGS_WITH_VALUE = {"-t", "--type", "-e", "--extension", "-E", "--exclude", "--search-path"}
NL_FLAGS_WITH_VALUE = {"-s", "-w", "-v", "-i", "-b"}
FIND_QUERY_FLAGS = {"-name", "-iname", "-path", "-regex"}

# === Path helpers ===


def short_display_path(path: str) -> str:
    """Last meaningful path segment, e.g. "webview/src" -> "webview"."""
    trimmed = path.replace("\\", "/").rstrip("/")
    for part in reversed(trimmed.split("/")):
        if part and part not in NOISE_SEGMENTS:
            return part
    return trimmed


def is_abs_like(path: str) -> bool:
    """True for /abs, C:\\drive and \\\\unc paths."""
    if path.startswith("/") or path.startswith("\\\\"):
        return True
    return len(path) >= 3 and path[0].isascii() and path[0].isalpha() and path[1:3] == ":\\"


def join_paths(base: str, rel: str) -> str:
    if is_abs_like(rel) or not base:
        return rel
    return posixpath.join(base, rel)


def is_pathish(s: str) -> bool:
    return s in {".", ".."} or s.startswith("./") or s.startswith("../") or "/" in s or "\\" in s


# === Token helpers ===


def trim_at_connector(tokens: list[str]) -> list[str]:
    for i, t in enumerate(tokens):
        if t in CONNECTORS:
            return tokens[:i]
    return tokens


def skip_flag_values(args: list[str], flags_with_value: set[str]) -> list[str]:
    """Drop the values consumed by flags_with_value and any --flag=value args.

    Everything after "--" is positional.
    """
    out = []
    skip_next = False
    for i, a in enumerate(args):
        if skip_next:
            skip_next = False
            continue
        if a == "--":
            out.extend(args[i + 1:])
            break
        if a.startswith("--") and "=" in a:
            continue
        if a in flags_with_value:
            skip_next = i + 1 < len(args)
            continue
        out.append(a)
    return out


def _non_flags(args: list[str]) -> list[str]:
    return [a for a in args if not a.startswith("-")]


def _all_digits(s: str) -> bool:
    return all(c in "0123456789" for c in s)


def _read(tokens: list[str], path: str) -> Read:
    return Read(cmd=shell_join(tokens), name=short_display_path(path), path=path)


# === Summarizers ===


def summarize_ls(tokens: list[str]) -> Intent:
    """List files; the path is the first positional, short-displayed."""
    candidates = _non_flags(skip_flag_values(tokens[1:], LS_FLAGS_WITH_VALUE))
    path = short_display_path(candidates[0]) if candidates else None
    return ListFiles(cmd=shell_join(tokens), path=path)


def _first_glob(args: list[str]) -> str | None:
    for i, a in enumerate(args):
        if a in RG_FLAGS_WITH_VALUE:
            if i + 1 < len(args):
                return args[i + 1]
        elif "=" in a:
            flag, value = a.split("=", 1)
            if flag in RG_FLAGS_WITH_VALUE:
                return value
    return None


def summarize_rg(tokens: list[str]) -> Intent:
    """Search with ripgrep; rg --files is a search with no query."""
    args = trim_at_connector(tokens[1:])
    non_flags = _non_flags(skip_flag_values(args, RG_FLAGS_WITH_VALUE))
    if "--files" in args:
        query = None
        path = short_display_path(non_flags[0]) if non_flags else _first_glob(args)
    else:
        query = non_flags[0] if non_flags else None
        path = short_display_path(non_flags[1]) if len(non_flags) > 1 else None
    return Search(cmd=shell_join(tokens), query=query, path=path)


def summarize_fd(tokens: list[str]) -> Intent:
    args = trim_at_connector(tokens[1:])
    non_flags = _non_flags(skip_flag_values(args, FD_FLAGS_WITH_VALUE))
    query = path = None
    if len(non_flags) == 1:
        if is_pathish(non_flags[0]):
            path = short_display_path(non_flags[0])
        else:
            query = non_flags[0]
    elif len(non_flags) > 1:
        query = non_flags[0]
        path = short_display_path(non_flags[1])
    return Search(cmd=shell_join(tokens), query=query, path=path)


def summarize_find(tokens: list[str]) -> Intent:
    """Search with find; the root is the first operand that is not an operator."""
    args = trim_at_connector(tokens[1:])
    path = None
    for a in args:
        if not a.startswith("-") and a not in {"!", "(", ")"}:
            path = short_display_path(a)
            break
    query = None
    for i, a in enumerate(args):
        if a in FIND_QUERY_FLAGS:
            if i + 1 < len(args):
                query = args[i + 1]
            break
    return Search(cmd=shell_join(tokens), query=query, path=path)


def summarize_grep(tokens: list[str]) -> Intent:
    # Patterns may contain slashes; only the path is shortened.
    non_flags = _non_flags(trim_at_connector(tokens[1:]))
    query = non_flags[0] if non_flags else None
    path = short_display_path(non_flags[1]) if len(non_flags) > 1 else None
    return Search(cmd=shell_join(tokens), query=query, path=path)


def summarize_cat(tokens: list[str]) -> Intent:
    args = tokens[1:]
    if args[:1] == ["--"]:
        args = args[1:]
    if len(args) == 1:
        return _read(tokens, args[0])
    return Unknown(cmd=shell_join(tokens))


def _line_count_path(tokens: list[str], is_count: Callable[[str], bool]) -> str | None:
    """File operand of head/tail, if they carry a valid -n N (or -nN)."""
    args = tokens[1:]
    if not args:
        return None
    if args[0] == "-n":
        if len(args) < 2 or not is_count(args[1]):
            return None
    elif not (args[0].startswith("-n") and is_count(args[0][2:])):
        return None
    candidates = args[2:] if args[0] == "-n" else args
    for candidate in candidates:
        if not candidate.startswith("-"):
            return candidate
    return None


def _tail_count(s: str) -> bool:
    s = s.removeprefix("+")
    return s != "" and _all_digits(s)


def summarize_head(tokens: list[str]) -> Intent:
    path = _line_count_path(tokens, _all_digits)
    if path is None:
        return Unknown(cmd=shell_join(tokens))
    return _read(tokens, path)


def summarize_tail(tokens: list[str]) -> Intent:
    path = _line_count_path(tokens, _tail_count)
    if path is None:
        return Unknown(cmd=shell_join(tokens))
    return _read(tokens, path)


def summarize_nl(tokens: list[str]) -> Intent:
    candidates = _non_flags(skip_flag_values(tokens[1:], NL_FLAGS_WITH_VALUE))
    if candidates:
        return _read(tokens, candidates[0])
    return Unknown(cmd=shell_join(tokens))


def summarize_sed(tokens: list[str]) -> Intent:
    """sed -n RANGE FILE reads FILE; anything else is unknown."""
    args = tokens[1:]
    if len(args) >= 3 and args[0] == "-n" and is_valid_sed_n_arg(args[1]):
        return _read(tokens, args[2])
    return Unknown(cmd=shell_join(tokens))


SUMMARIZERS: dict[str, Callable[[list[str]], Intent]] = {
    "cat": summarize_cat,
    "fd": summarize_fd,
    "find": summarize_find,
    "grep": summarize_grep,
    "head": summarize_head,
    "ls": summarize_ls,
    "nl": summarize_nl,
    "rg": summarize_rg,
    "sed": summarize_sed,
    "tail": summarize_tail,
}


def summarize_main_tokens(tokens: list[str]) -> Intent:
    """Summarize one word-only command by its head."""
    if tokens and tokens[0] in SUMMARIZERS:
        return SUMMARIZERS[tokens[0]](tokens)
    return Unknown(cmd=shell_join(tokens))


def summarize_segments(commands: list[list[str]]) -> list[Intent]:
    """Summarize commands in order, following cd into a virtual cwd.

    cd itself produces no record; Read paths are joined onto the cwd.
    """
    intents: list[Intent] = []
    cwd = None
    for tokens in commands:
        if tokens and tokens[0] == "cd":
            if len(tokens) > 1:
                cwd = tokens[1] if cwd is None else join_paths(cwd, tokens[1])
            continue
        intent = summarize_main_tokens(tokens)
        if isinstance(intent, Read) and cwd is not None:
            intent = Read(cmd=intent.cmd, name=intent.name, path=join_paths(cwd, intent.path))
        intents.append(intent)
    return intents


# === Formatting helpers ===


def is_small_formatting_command(tokens: list[str]) -> bool:
    """True for helpers like `head -n 40`, `wc -l` or `awk ...` in a pipeline."""
    if not tokens:
        return False
    cmd = tokens[0]
    if cmd in FORMATTING_COMMANDS:
        return True
    if cmd in {"head", "tail"}:
        # Keep variants with a file operand, e.g. `tail -n 30 file`.
        return len(tokens) < 3
    if cmd == "sed":
        return len(tokens) < 4 or not (tokens[1] == "-n" and is_valid_sed_n_arg(tokens[2]))
    return False


def drop_small_formatting_commands(commands: list[list[str]]) -> list[list[str]]:
    return [tokens for tokens in commands if not is_small_formatting_command(tokens)]


# === Simplifier ===


def _unknown_head(intent: Intent) -> list[str] | None:
    if not isinstance(intent, Unknown):
        return None
    return try_shell_split(intent.cmd)


def _without(intents: list[Intent], idx: int) -> list[Intent]:
    return intents[:idx] + intents[idx + 1:]


def simplify_once(intents: list[Intent]) -> list[Intent] | None:
    """Apply the first applicable noise-dropping rewrite, or None if none applies."""
    if len(intents) <= 1:
        return None

    # echo ... && rest => rest
    tokens = _unknown_head(intents[0])
    if tokens and tokens[0] == "echo":
        return intents[1:]

    # cd foo && cmd => cmd
    for idx, intent in enumerate(intents):
        tokens = _unknown_head(intent)
        if tokens and tokens[0] == "cd":
            if idx + 1 < len(intents):
                return _without(intents, idx)
            break

    # cmd || true => cmd
    for idx, intent in enumerate(intents):
        if isinstance(intent, Unknown) and intent.cmd == "true":
            return _without(intents, idx)

    # nl -ba && rest => rest
    for idx, intent in enumerate(intents):
        tokens = _unknown_head(intent)
        if tokens and tokens[0] == "nl" and all(t.startswith("-") for t in tokens[1:]):
            return _without(intents, idx)

    return None


def simplify(intents: list[Intent]) -> list[Intent]:
    """Run simplify_once to a fixpoint."""
    while True:
        simpler = simplify_once(intents)
        if simpler is None:
            return intents
        intents = simpler
