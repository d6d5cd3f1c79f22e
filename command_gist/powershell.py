"""Analysis of `powershell` / `pwsh -Command SCRIPT` invocations.

The read-only check is lexical. A script passes only when every statement
starts with an allowed cmdlet or keyword, or with an external command that
is known safe on its own.
"""

import re
import string

from command_gist.allowlist import CONNECTORS, CUSTOM_CHECKS
from command_gist.intents import Intent, ListFiles, Read, Search, Unknown
from command_gist.shell_words import find_unquoted, shell_join, split_on_top_level, try_shell_split
from command_gist.summary import short_display_path, simplify, summarize_main_tokens

# === Data: What PowerShell is read-only ===

POWERSHELL_EXES = {"powershell", "pwsh", "powershell.exe", "pwsh.exe"}

ALLOWED_CMDLETS = {
    "get-content", "select-string", "get-childitem", "foreach-object",
    "measure-object", "join-path", "where-object", "select-object", "test-path",
    "write-output", "write-host", "out-string", "%",
}

# Mutating verbs; a trailing entry lists the forms of that verb we still allow
BANNED_SUBSTRINGS = {
    " set-": (),
    " remove-": (),
    " new-": (),
    " copy-": (),
    " move-": (),
    " start-": (),
    " stop-": (),
    " restart-": (),
    " invoke-": (),
    " out-": ("out-string",),
    " add-": (),
    " clear-": (),
    " write-": ("write-output", "write-host"),
    " rename-": (),
    " set-content": (),
    " add-content": (),
    " new-item": (),
    " remove-item": (),
    " set-acl": (),
    " remove-acl": (),
}

BANNED_ALIASES = {"rm", "del", "rmdir", "mkdir"}

KEYWORDS = {"for", "foreach", "if", "elseif", "else", "while", "switch", "try", "catch", "finally"}

# Members `% Name` may read; anything else could be a method call
READ_ONLY_MEMBERS = {
    "basename", "count", "extension", "fullname", "length", "line", "linenumber",
    "lines", "name", "path",
}

# .Name( calls that only compute on strings and numbers
READ_ONLY_METHODS = {
    "contains", "endswith", "indexof", "padleft", "padright", "split",
    "startswith", "substring", "tolower", "tostring", "toupper", "trim",
    "trimend", "trimstart",
}

READ_ONLY_TYPES = {"math", "system.math"}

# Chars PowerShell also accepts as quotes or dashes
LOOKALIKE_CHARS = set("‘’‚‛“”„–—―")

STATEMENT_DELIMS = ";|{}\n"

METHOD_CALL = re.compile(r"(\[[\w.]+\])?(::|\.)([A-Za-z_]\w*)\s*\(")
ENV_ASSIGNMENT = re.compile(r"\$\{?env:[\w()]*\}?\s*[-+*/]?=(?!=)", re.IGNORECASE)
# $obj.Prop = x, (expr).Prop = x, $a[0] = x
MEMBER_ASSIGNMENT = re.compile(r"[.\])]\s*\w*\s*(?:[-+*/%]|\?\?)?=(?!=)")
CMDLET_NAME = re.compile(r"[A-Za-z]+-[A-Za-z]+")
IDENTIFIER = re.compile(r"[A-Za-z0-9_]+")

ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def ascii_lower(s: str) -> str:
    return s.translate(ASCII_LOWER)


def extract_script(argv: list[str]) -> str | None:
    """Return SCRIPT from [powershell|pwsh, -NoLogo|-NoProfile..., -Command|-c, SCRIPT]."""
    if not argv or argv[0] not in POWERSHELL_EXES:
        return None
    i = 1
    while i < len(argv) and argv[i] in {"-NoLogo", "-NoProfile"}:
        i += 1
    if i + 1 < len(argv) and argv[i] in {"-Command", "-c"}:
        return argv[i + 1]
    return None


# === Lexing ===


def simple_tokens(segment: str) -> list[tuple[str, bool]]:
    """Split on whitespace and parens outside quotes.

    Quote chars are dropped; each token is paired with whether any part of
    it was quoted.
    """
    tokens = []
    buf = []
    quoted = False
    in_single = False
    in_double = False
    for ch in segment + " ":
        if ch == "'" and not in_double:
            in_single = not in_single
            quoted = True
        elif ch == '"' and not in_single:
            in_double = not in_double
            quoted = True
        elif ch in " \t\n()" and not in_single and not in_double:
            if buf or quoted:
                tokens.append(("".join(buf), quoted))
            buf = []
            quoted = False
        else:
            buf.append(ch)
    return [(text, quoted) for text, quoted in tokens if text]


def _split_groups(text: str) -> tuple[str, list[str]]:
    """Blank out top-level (...) groups and return them separately."""
    outer = []
    groups = []
    body = []
    depth = 0
    in_single = False
    in_double = False
    for ch in text:
        if not in_double and ch == "'":
            in_single = not in_single
        elif not in_single and ch == '"':
            in_double = not in_double
        elif not in_single and not in_double:
            if ch == "(":
                depth += 1
                if depth == 1:
                    outer.append(" ")
                    continue
            elif ch == ")" and depth > 0:
                depth -= 1
                if depth == 0:
                    groups.append("".join(body))
                    body = []
                    continue
        if depth:
            body.append(ch)
        else:
            outer.append(ch)
    if body:
        groups.append("".join(body))
    return "".join(outer), groups


def statements(script: str) -> list[str]:
    """Every place a command can start: statements, script blocks, (...) groups."""
    outer, groups = _split_groups(script)
    out = split_on_top_level(outer, STATEMENT_DELIMS)
    for group in groups:
        out.extend(statements(group))
    return out


def _strings_removed(script: str) -> tuple[str, list[str]] | None:
    """Return script with string literals blanked, plus "$( ... )" bodies found in them.

    None if a "$( ... )" body holds quotes of its own, since those would
    change where the outer string ends.
    """
    code = []
    subexpressions = []
    in_single = False
    i = 0
    while i < len(script):
        ch = script[i]
        if in_single:
            if ch == "'":
                in_single = False
                code.append("''")
            i += 1
            continue
        if ch == "'":
            in_single = True
            i += 1
            continue
        if ch != '"':
            code.append(ch)
            i += 1
            continue
        # Double-quoted: only $( ... ) inside is code.
        i += 1
        while i < len(script) and script[i] != '"':
            if script.startswith("$(", i):
                depth = 0
                start = i + 2
                while i < len(script):
                    if script[i] in "'\"":
                        return None
                    if script[i] == "(":
                        depth += 1
                    elif script[i] == ")":
                        depth -= 1
                        if depth == 0:
                            break
                    i += 1
                subexpressions.append(script[start:i])
            i += 1
        code.append('""')
        i += 1
    return "".join(code), subexpressions


def contains_banned_substring(script: str) -> bool:
    """Case-insensitive scan for mutating cmdlet verbs."""
    lower = " " + ascii_lower(script)
    for needle, allowed in BANNED_SUBSTRINGS.items():
        start = lower.find(needle)
        while start != -1:
            if not any(lower.startswith(form, start + 1) for form in allowed):
                return True
            start = lower.find(needle, start + 1)
    return False


def mentions_get_content(lower: str) -> bool:
    """True if the (lowercased) script reads files with Get-Content or `type`."""
    return (
        "get-content" in lower
        or lower.startswith("type ")
        or lower == "type"
        or "| type " in lower
        or lower.endswith("| type")
    )


# === Read-only check ===


def _statement_is_read_only(statement: str) -> bool:
    from command_gist.safety import is_known_safe

    tokens = simple_tokens(statement)
    if not tokens:
        return True
    head, head_quoted = tokens[0]
    # Dot-sourcing and running scripts by path
    if not head_quoted and (head == "." or head.startswith((".\\", "./", "\\", "/", "~"))):
        return False

    for idx, (text, quoted) in enumerate(tokens):
        if quoted or not (text[0].isascii() and text[0].isalpha() or text[0] == "%") or "=" in text:
            continue
        first = ascii_lower(text)
        if first in {"%", "foreach-object"}:
            return _member_is_read_only(tokens[idx + 1:])
        if "-" in first or first in KEYWORDS:
            return True
        if first in BANNED_ALIASES:
            return False
        argv = native_args(tokens)
        if ascii_lower(argv[0]) == "type":
            return True
        # Variables and splats can expand to any flag.
        if argv[0] in CUSTOM_CHECKS and any("$" in t or t.startswith("@") for t in argv[1:]):
            return False
        return is_known_safe(argv)
    return True


def native_args(tokens: list[tuple[str, bool]]) -> list[str]:
    """Arguments as a native program receives them; `a,b` is an array of two."""
    argv = []
    for text, _ in tokens:
        argv.extend(part for part in text.split(",") if part)
    return argv


def _member_is_read_only(args: list[tuple[str, bool]]) -> bool:
    """`% Name` and `ForEach-Object -MemberName Name` invoke Name on each item."""
    for text, _ in args:
        if text.startswith("-"):
            continue
        return ascii_lower(text) in READ_ONLY_MEMBERS
    return True


def _calls_are_read_only(code: str) -> bool:
    for m in METHOD_CALL.finditer(code):
        type_name, sep, method = m.groups()
        if sep == "::":
            if type_name is None or ascii_lower(type_name[1:-1]) not in READ_ONLY_TYPES:
                return False
        elif ascii_lower(method) not in READ_ONLY_METHODS:
            return False
    return True


def _cmdlet_allowlist(code: str) -> bool | None:
    """Check hyphenated words against ALLOWED_CMDLETS.

    Returns False for a cmdlet outside the list, None when some hyphenated
    word is not shaped like a cmdlet at all (e.g. my-file.txt), else True.
    """
    verdict = True
    for token in re.split(r"[\s|;(){},=]+", code):
        if not token or token[0] in "$-" or "-" not in token:
            continue
        if not any(c.isascii() and c.isalpha() for c in token):
            continue
        lower = ascii_lower(token)
        if lower in ALLOWED_CMDLETS:
            continue
        if CMDLET_NAME.fullmatch(lower.rsplit("\\", 1)[-1]):
            return False
        verdict = None
    return verdict


def is_read_only_script(script: str) -> bool:
    """Conservative check that a PowerShell script only reads."""
    if any(c in LOOKALIKE_CHARS for c in script):
        return False
    # Escaped quotes move string boundaries
    if "`'" in script or '`"' in script:
        return False
    # Redirection, the call operator, && chains and escapes
    if find_unquoted(script, ">&`") != -1:
        return False
    if contains_banned_substring(script):
        return False

    stripped = _strings_removed(script)
    if stripped is None:
        return False
    code, subexpressions = stripped
    if not all(is_read_only_script(s) for s in subexpressions):
        return False
    if ENV_ASSIGNMENT.search(code) or MEMBER_ASSIGNMENT.search(code):
        return False
    if not _calls_are_read_only(code):
        return False
    if not all(_statement_is_read_only(s) for s in statements(script)):
        return False

    verdict = _cmdlet_allowlist(code)
    if verdict is None:
        return mentions_get_content(ascii_lower(script))
    return verdict


# === Assignments ===


def _scan_assignment(script: str, i: int) -> tuple[str, str, int] | None:
    """Parse `$name = 'value'` at i; return (name, value, index after the closing quote)."""
    if not script.startswith("$", i):
        return None
    m = IDENTIFIER.match(script, i + 1)
    if m is None:
        return None
    k = m.end()
    while k < len(script) and script[k].isspace():
        k += 1
    if not script.startswith("=", k):
        return None
    k += 1
    while k < len(script) and script[k].isspace():
        k += 1
    if k >= len(script) or script[k] not in "'\"":
        return None
    close = script.find(script[k], k + 1)
    if close == -1:
        return None
    return m.group(), script[k + 1:close], close + 1


def collect_simple_assignments(script: str) -> dict[str, str]:
    """Map of `$name = '...'` / `$name = "..."` statements anywhere in the script."""
    assigns = {}
    i = 0
    while i < len(script):
        while i < len(script) and (script[i].isspace() or script[i] == ";"):
            i += 1
        found = _scan_assignment(script, i)
        if found is None:
            semi = script.find(";", i)
            if semi == -1:
                break
            i = semi + 1
            continue
        name, value, i = found
        assigns[name] = value
        semi = script.find(";", i)
        i = len(script) if semi == -1 else semi + 1
    return assigns


def strip_leading_assignments(script: str) -> tuple[str, dict[str, str]]:
    assigns = collect_simple_assignments(script)
    if not assigns:
        return script, assigns
    i = 0
    while True:
        while i < len(script) and (script[i].isspace() or script[i] == ";"):
            i += 1
        found = _scan_assignment(script, i)
        if found is None:
            break
        i = found[2]
        while i < len(script) and script[i].isspace():
            i += 1
        if script.startswith(";", i):
            i += 1
    return script[i:], assigns


def _substitute(text: str, assigns: dict[str, str], quote: bool) -> str:
    if not assigns:
        return text

    def replace(m: re.Match) -> str:
        value = assigns.get(m.group(1))
        if value is None:
            return m.group()
        if quote and any(c in value for c in "\\ \t;|"):
            return '"' + value.replace('"', '\\"') + '"'
        return value

    return re.sub(r"\$([A-Za-z0-9_]+)", replace, text)


def substitute_vars(text: str, assigns: dict[str, str]) -> str:
    """Inline known values, quoted so a POSIX re-split keeps them whole."""
    return _substitute(text, assigns, quote=True)


def substitute_vars_for_display(text: str, assigns: dict[str, str]) -> str:
    return _substitute(text, assigns, quote=False)


# === Extraction heuristics ===


def _value_after(script: str, flag: str) -> str | None:
    idx = ascii_lower(script).find(flag)
    if idx == -1:
        return None
    return script[idx + len(flag):].lstrip(" \t\n:=")


def extract_filenames(script: str) -> list[str]:
    """Files listed after -Path, e.g. `Get-Content -Path a.toml, 'b c.md'`."""
    lower = ascii_lower(script)
    idx = -1
    for m in re.finditer("-path", lower):
        before = lower[m.start() - 1] if m.start() else " "
        after = lower[m.end()] if m.end() < len(lower) else " "
        if not (before.isalpha() or before in "-_") and not (after.isalnum() or after == "_"):
            idx = m.start()
            break
    if idx == -1:
        return []
    rest = script[idx + len("-path"):].lstrip(" \t\n:=")
    buf = []
    quote = None
    prev = ""
    for ch in rest:
        if quote:
            if ch == quote:
                quote = None
            buf.append(ch)
        elif ch in "'\"":
            quote = ch
            buf.append(ch)
        elif ch in "|;":
            break
        elif ch == "-" and prev.isspace():
            break
        else:
            buf.append(ch)
        prev = ch
    names = [part.strip().strip("'").strip('"') for part in "".join(buf).strip().split(",")]
    return [n for n in names if n]


def extract_match_query(script: str) -> str | None:
    """Quoted value of -match, with quotes and backslashes removed."""
    rest = _value_after(script, "-match")
    if not rest or rest[0] not in "'\"":
        return None
    end = rest.find(rest[0], 1)
    value = rest[1:] if end == -1 else rest[1:end]
    simplified = value.replace("\\", "").replace('"', "").replace("'", "")
    return simplified or None


def extract_pattern(script: str) -> str | None:
    """Value of -Pattern, quoted or up to the next whitespace."""
    rest = _value_after(script, "-pattern")
    if not rest:
        return None
    if rest[0] in "'\"":
        end = rest.find(rest[0], 1)
        return rest[1:] if end == -1 else rest[1:end]
    return rest.split()[0]


def _candidate_words(script: str) -> list[tuple[str, bool]]:
    words = []
    buf = []
    quote = None
    for ch in script:
        if quote:
            if ch == quote:
                if buf:
                    words.append(("".join(buf), True))
                buf = []
                quote = None
            else:
                buf.append(ch)
        elif ch in "'\"":
            if buf:
                words.append(("".join(buf), False))
            buf = []
            quote = ch
        elif ch.isspace() or ch in "|;(){},=":
            if buf:
                words.append(("".join(buf), False))
            buf = []
        else:
            buf.append(ch)
    if buf:
        words.append(("".join(buf), quote is not None))
    return words


def extract_filename(script: str) -> str | None:
    """First word that looks like a file name (has a dot and a letter)."""
    for word, _ in _candidate_words(script):
        if "." in word and any(c.isascii() and c.isalpha() for c in word):
            return word
    return None


def extract_directory(script: str) -> str | None:
    """First quoted string that contains a path separator."""
    for word, quoted in _candidate_words(script):
        if quoted and ("/" in word or "\\" in word):
            return word
    return None


def _looks_like_path(s: str) -> bool:
    return "/" in s or "\\" in s or ("." in s and any(c.isascii() and c.isalpha() for c in s))


def positional_get_content_args(script: str) -> list[str]:
    """File operands of bare `Get-Content FILE` / `type FILE`, unless -Path is used."""
    out = []
    for segment in split_on_top_level(script, ";|"):
        tokens = [t for t, _ in simple_tokens(segment)]
        for i, token in enumerate(tokens):
            if ascii_lower(token) not in {"get-content", "type"}:
                continue
            rest = tokens[i + 1:]
            if any(ascii_lower(t).split(":", 1)[0] in {"-path", "-literalpath"} for t in rest):
                continue
            operands = [t for t in rest if not t.startswith("-")]
            if operands and _looks_like_path(operands[0]):
                out.append(operands[0])
            break
    return out


# === Summaries ===


def _read_entries(script: str, display: str, raws: list[str]) -> list[Intent]:
    seen = set()
    entries = []
    for raw in raws:
        name = short_display_path(raw)
        if name in seen:
            continue
        seen.add(name)
        idx = script.find(raw)
        if idx == -1:
            idx = script.find(name)
        entries.append((idx if idx != -1 else len(script), name, raw))
    entries.sort(key=lambda e: e[0])
    return [Read(cmd=display, name=name, path=raw) for _, name, raw in entries]


def _summarize_select_string(script: str, display: str, lower: str) -> list[Intent] | None:
    if "select-string" not in lower:
        return None
    if "get-content" in lower:
        name = extract_filename(script)
        if name is not None:
            return [Read(cmd=display, name=short_display_path(name), path=name)]
    files = extract_filenames(script)
    if files:
        path = short_display_path(files[0])
    else:
        directory = extract_directory(script)
        path = short_display_path(directory) if directory else None
    return [Search(cmd=display, query=extract_pattern(script), path=path)]


def _summarize_get_childitem(script: str, display: str, lower: str) -> list[Intent] | None:
    if "get-childitem" not in lower:
        return None
    query = extract_match_query(script)
    path = None
    if query is None:
        directory = extract_directory(script)
        path = short_display_path(directory) if directory else None
    return [Search(cmd=display, query=query, path=path)]


def _summarize_get_content(script: str, display: str, lower: str) -> list[Intent] | None:
    if not mentions_get_content(lower):
        return None
    raws = extract_filenames(script) + positional_get_content_args(script)
    if raws:
        return _read_entries(script, display, raws)
    name = extract_filename(script)
    if name is not None:
        return [Read(cmd=display, name=short_display_path(name), path=name)]
    return None


def _with_cmd(intent: Intent, cmd: str) -> Intent:
    if isinstance(intent, Read):
        return Read(cmd=cmd, name=intent.name, path=intent.path)
    if isinstance(intent, ListFiles):
        return ListFiles(cmd=cmd, path=intent.path)
    if isinstance(intent, Search):
        return Search(cmd=cmd, query=intent.query, path=intent.path)
    return Unknown(cmd=cmd)


def _summarize_words(script: str, display: str) -> list[Intent] | None:
    """Treat the script as POSIX words and summarize it like any other argv."""
    tokens = try_shell_split(script)
    if tokens is None:
        return None
    chains = CONNECTORS - {"|"}
    if not chains & set(tokens):
        return [_with_cmd(summarize_main_tokens(tokens), display)]
    segments: list[list[str]] = [[]]
    for t in tokens:
        if t in chains:
            segments.append([])
        else:
            segments[-1].append(t)
    intents = [_with_cmd(summarize_main_tokens(seg), shell_join(seg)) for seg in segments if seg]
    return simplify(intents)


def summarize(argv: list[str]) -> list[Intent] | None:
    """Summarize a PowerShell invocation; None if argv is not one."""
    script = extract_script(argv)
    if script is None:
        return None
    stripped, assigns = strip_leading_assignments(script)
    substituted = substitute_vars(stripped, assigns)
    lower = ascii_lower(substituted)

    # Cmdlet pipelines keep the original script so assignments stay visible.
    for handler in (_summarize_select_string, _summarize_get_childitem, _summarize_get_content):
        intents = handler(substituted, script, lower)
        if intents:
            return intents

    intents = _summarize_words(substituted, substitute_vars_for_display(stripped, assigns))
    if intents:
        return intents
    return [Unknown(cmd=script)]
