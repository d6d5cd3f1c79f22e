"""Analysis of `bash -lc SCRIPT` / `zsh -lc SCRIPT` invocations using bashlex."""

from typing import Any

import re

import bashlex

from command_gist.allowlist import CONNECTORS, CUSTOM_CHECKS, is_safe_to_exec
from command_gist.intents import Intent, ListFiles, Read, Search, Unknown
from command_gist.shell_words import find_unquoted, shell_join, shell_split, try_shell_split
from command_gist.summary import drop_small_formatting_commands, simplify, summarize_segments

SHELLS = {"bash", "zsh"}

LIST_OPERATORS = {";", "&&", "||", "\n"}

# Word expansions that cannot change what a command does
HARMLESS_EXPANSIONS = {"tilde"}

IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# $NAME, $1, $@, $(..), ${..}, $-, ...
VAR_REFERENCE = re.compile(r"\$[A-Za-z_0-9@*#?$!({-]")

BRACE_EXPANSION = re.compile(r"\{[^{}]*(,|\.\.)[^{}]*\}")

SUBST_PLACEHOLDER = "SUBST"

# zsh ties these to PATH, CDPATH, FPATH, ... so assigning them is not local
ZSH_TIED_PARAMS = {"path", "cdpath", "fpath", "manpath", "mailpath", "module_path", "psvar"}


def split_lc_invocation(argv: list[str]) -> str | None:
    """Return SCRIPT for [bash|zsh, -lc, SCRIPT], else None."""
    if len(argv) == 3 and argv[0] in SHELLS and argv[1] == "-lc":
        return argv[2]
    return None


# === AST parsing ===


def try_parse_bash(script: str) -> list[Any] | None:
    """Parse script with bashlex; None if bashlex cannot handle it."""
    try:
        return bashlex.parse(script)
    except Exception:
        return None


def _is_plain_word(part: Any, script: str) -> bool:
    if part.kind != "word":
        return False
    if any(p.kind not in HARMLESS_EXPANSIONS for p in getattr(part, "parts", None) or []):
        return False
    # Brace expansion would let -{exec,} synthesise arbitrary words, and
    # unquoted parens in a word are extglobs or zsh glob qualifiers.
    start, end = part.pos
    masked = _mask_quoted(script[start:end])
    if "(" in masked or ")" in masked:
        return False
    return BRACE_EXPANSION.search(masked) is None


def _mask_quoted(raw: str) -> str:
    """Drop quote chars and blank out what they enclose."""
    out = []
    in_single = False
    in_double = False
    for ch in raw:
        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        else:
            out.append("_" if in_single or in_double else ch)
    return "".join(out)


def _collect_commands(node: Any, script: str, commands: list[list[str]]) -> bool:
    if node.kind == "command":
        words = []
        for part in node.parts:
            if not _is_plain_word(part, script):
                return False
            words.append(part.word)
        if not words:
            return False
        commands.append(words)
        return True

    if node.kind == "list":
        for part in node.parts:
            if part.kind == "operator":
                if part.op not in LIST_OPERATORS:
                    return False
            elif not _collect_commands(part, script, commands):
                return False
        return True

    if node.kind == "pipeline":
        for part in node.parts:
            if part.kind == "pipe":
                if part.pipe != "|":
                    return False
            elif not _collect_commands(part, script, commands):
                return False
        return True

    return False


def word_only_commands(nodes: list[Any], script: str) -> list[list[str]] | None:
    """Return the argvs of a script made only of plain words and safe operators.

    Returns None if anything else shows up: expansions, redirects, assignments,
    compound commands, functions, background jobs or |&.
    """
    commands: list[list[str]] = []
    for node in nodes:
        if not _collect_commands(node, script, commands):
            return None
    return commands


def parse_bash_lc_plain_commands(argv: list[str]) -> list[list[str]] | None:
    script = split_lc_invocation(argv)
    if script is None:
        return None
    nodes = try_parse_bash(script)
    if nodes is None:
        return None
    return word_only_commands(nodes, script)


# === Read-only scripts with assignments ===


def is_pure_assignment(s: str) -> bool:
    """NAME=VALUE with a shell identifier NAME, a non-empty VALUE and no spaces."""
    name, eq, value = s.partition("=")
    if not eq or not value or " " in s:
        return False
    return IDENTIFIER.fullmatch(name) is not None


def has_assignment_prefix(s: str) -> bool:
    """NAME=value followed by more words, e.g. `FOO=bar ls`."""
    head, space, _ = s.partition(" ")
    return bool(space) and is_pure_assignment(head)


def _is_local_name(name: str) -> bool:
    # All-caps names are environment variables (PATH, IFS, PAGER, ...).
    return name not in ZSH_TIED_PARAMS and any(c.islower() for c in name)


def split_on_shell_operators(s: str) -> list[str] | None:
    """Split on |, ||, &&, ; and newlines outside quotes.

    A lone & is a background job and returns None. Segments are stripped;
    `||` yields an empty segment between the two pipes.
    """
    parts = []
    buf = []
    in_single = False
    in_double = False
    i = 0
    while i < len(s):
        c = s[i]
        if c == "'" and not in_double:
            in_single = not in_single
            buf.append(c)
        elif c == '"' and not in_single:
            in_double = not in_double
            buf.append(c)
        elif in_single or in_double:
            buf.append(c)
        elif c in "|;\n":
            parts.append("".join(buf).strip())
            buf = []
        elif c == "&":
            if s[i + 1:i + 2] != "&":
                return None
            i += 1
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(c)
        i += 1
    tail = "".join(buf).strip()
    if tail:
        parts.append(tail)
    return parts


def _is_safe_after_expansion(tokens: list[str]) -> bool:
    """Like is_safe_to_exec, but values of variables are unknown.

    Programs whose safety depends on their flags must not receive a
    variable or substitution, since it could expand to any flag.
    """
    if not tokens or not is_safe_to_exec(tokens):
        return False
    if tokens[0] in CUSTOM_CHECKS:
        return not any(VAR_REFERENCE.search(t) for t in tokens[1:])
    return True


def _elide_substitutions(script: str) -> str | None:
    """Replace each $(...) with a placeholder once its inner command checks out."""
    s = script
    while True:
        start = s.find("$(")
        if start == -1:
            return s
        depth = 1
        end = None
        for i in range(start + 2, len(s)):
            if s[i] == "(":
                depth += 1
            elif s[i] == ")":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end is None:
            return None
        inner = s[start + 2:end].strip()
        if find_unquoted(inner, "|;&\n") != -1 or "$(" in inner or "`" in inner:
            return None
        if not _is_safe_after_expansion(shell_split(inner)):
            return None
        s = s[:start] + SUBST_PLACEHOLDER + s[end + 1:]


def is_bash_read_only_with_assignments(script: str) -> bool:
    """Accept safe commands mixed with `name=value` assignments and $(...) values."""
    s = _elide_substitutions(script)
    if s is None:
        return False
    if any(c in s for c in "`<>{}"):
        return False
    # Subshells, and zsh glob qualifiers such as *(e:...:)
    if find_unquoted(s, "()") != -1:
        return False
    if "&" in s.replace("&&", ""):
        return False

    segments = split_on_shell_operators(s)
    if not segments:
        return False
    for segment in segments:
        if not segment:
            continue
        if is_pure_assignment(segment):
            if not _is_local_name(segment.partition("=")[0]):
                return False
            continue
        if has_assignment_prefix(segment):
            return False
        if not _is_safe_after_expansion(shell_split(segment)):
            return False
    return True


# === Summaries ===


def summarize_bash_lc(argv: list[str]) -> list[Intent] | None:
    """Summarize [bash|zsh, -lc, SCRIPT]; None for any other shape."""
    script = split_lc_invocation(argv)
    if script is None:
        return None
    commands = parse_bash_lc_plain_commands(argv)
    if not commands:
        return [Unknown(cmd=script)]

    script_tokens = try_shell_split(script)
    if script_tokens is None:
        script_tokens = list(argv)
    had_multiple_commands = len(commands) > 1

    commands = drop_small_formatting_commands(commands)
    if not commands:
        return [Unknown(cmd=script)]

    intents = summarize_segments(commands)
    if not intents:
        return [Unknown(cmd=script)]
    if len(intents) > 1:
        intents = [i for i in intents if not (isinstance(i, Unknown) and i.cmd == "true")]
        intents = simplify(intents)
    if len(intents) == 1:
        had_connectors = had_multiple_commands or bool(CONNECTORS & set(script_tokens))
        intents = [_attribute_script(intents[0], script, script_tokens, had_connectors)]
    return intents


def _attribute_script(intent: Intent, script: str, script_tokens: list[str], had_connectors: bool) -> Intent:
    """Show the whole script for a lone summary where that reads better."""
    if isinstance(intent, Read):
        if not had_connectors:
            return Read(cmd=shell_join(script_tokens), name=intent.name, path=intent.path)
        has_sed_n = any(a == "sed" and b == "-n" for a, b in zip(script_tokens, script_tokens[1:]))
        if "|" in script_tokens and has_sed_n:
            return Read(cmd=script, name=intent.name, path=intent.path)
        return intent
    if isinstance(intent, ListFiles) and not had_connectors:
        return ListFiles(cmd=shell_join(script_tokens), path=intent.path)
    if isinstance(intent, Search) and not had_connectors:
        return Search(cmd=shell_join(script_tokens), query=intent.query, path=intent.path)
    return intent
