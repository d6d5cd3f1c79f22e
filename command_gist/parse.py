"""The summarizer: what is this argv doing, in a few records?"""

from command_gist import bash, cmd_exe, powershell
from command_gist.allowlist import CONNECTORS
from command_gist.intents import Intent, Unknown, dedupe_consecutive
from command_gist.shell_words import decode_args, shell_join, try_shell_split
from command_gist.summary import simplify, summarize_segments

# Answers piped into a command; the summary is about the command
ANSWER_PREFIXES = {"yes", "y", "no", "n"}


def normalize_tokens(words: list[str]) -> list[str]:
    """Drop a `yes |` style prefix and re-split `bash -c SCRIPT`."""
    if len(words) >= 2 and words[0] in ANSWER_PREFIXES and words[1] == "|":
        return words[2:]
    if len(words) == 3 and words[0] in bash.SHELLS and words[1] in {"-c", "-lc"}:
        tokens = try_shell_split(words[2])
        if tokens is not None:
            return tokens
    return words


def split_segments(tokens: list[str]) -> list[list[str]]:
    """Partition at connector tokens, dropping empty segments."""
    if not CONNECTORS & set(tokens):
        return [tokens]
    segments: list[list[str]] = [[]]
    for t in tokens:
        if t in CONNECTORS:
            segments.append([])
        else:
            segments[-1].append(t)
    return [seg for seg in segments if seg]


def _summarize_generic(words: list[str]) -> list[Intent]:
    commands = split_segments(normalize_tokens(words))
    return simplify(summarize_segments(commands))


def parse_intent(argv: list[str | bytes]) -> list[Intent]:
    """Summarize argv as Read / ListFiles / Search / Unknown records.

    Never empty; consecutive duplicates are collapsed.
    """
    words = decode_args(argv, errors="replace")

    intents = bash.summarize_bash_lc(words)
    if intents is None:
        intents = powershell.summarize(words)
    if intents is None:
        intents = cmd_exe.summarize(words)
    if intents is None:
        intents = _summarize_generic(words)

    intents = dedupe_consecutive(intents)
    if not intents:
        return [Unknown(cmd=shell_join(words))]
    return intents
