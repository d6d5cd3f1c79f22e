"""Decide whether a shell command is read-only, and say what it does."""

from command_gist.intents import Intent, ListFiles, Read, Search, Unknown
from command_gist.parse import parse_intent
from command_gist.safety import is_known_safe

__all__ = ["Intent", "ListFiles", "Read", "Search", "Unknown", "is_known_safe", "parse_intent"]
