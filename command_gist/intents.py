"""Intent records: what a command is doing, in human terms."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Read:
    cmd: str
    name: str
    path: str

    def to_dict(self) -> dict:
        return {"type": "read", "cmd": self.cmd, "name": self.name, "path": self.path}


@dataclass(frozen=True)
class ListFiles:
    cmd: str
    path: str | None = None

    def to_dict(self) -> dict:
        return {"type": "list_files", "cmd": self.cmd, "path": self.path}


@dataclass(frozen=True)
class Search:
    cmd: str
    query: str | None = None
    path: str | None = None

    def to_dict(self) -> dict:
        return {"type": "search", "cmd": self.cmd, "query": self.query, "path": self.path}


@dataclass(frozen=True)
class Unknown:
    cmd: str

    def to_dict(self) -> dict:
        return {"type": "unknown", "cmd": self.cmd}


Intent = Read | ListFiles | Search | Unknown


def describe(intent: Intent) -> str:
    """One-line gist of a single record, e.g. "read foo.txt"."""
    if isinstance(intent, Read):
        return f"read {intent.name}"
    if isinstance(intent, ListFiles):
        return f"list files in {intent.path}" if intent.path else "list files"
    if isinstance(intent, Search):
        if intent.query and intent.path:
            return f"search {intent.query!r} in {intent.path}"
        if intent.query:
            return f"search {intent.query!r}"
        if intent.path:
            return f"search in {intent.path}"
        return "search"
    return f"run {intent.cmd}"


def dedupe_consecutive(intents: list[Intent]) -> list[Intent]:
    """Collapse runs of equal records into one."""
    out: list[Intent] = []
    for intent in intents:
        if not out or out[-1] != intent:
            out.append(intent)
    return out
