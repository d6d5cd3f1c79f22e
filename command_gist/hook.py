"""Console entry points.

command-gist-hook is a PreToolUse hook: it reads the tool call JSON on
stdin and answers with a permission decision.

Hook exit codes:
- 0: Success. JSON on stdout carries the decision.

command-gist prints the safety verdict and summary records for an argv.
"""

from pathlib import Path

import json
import logging
import sys

import structlog

from command_gist.config import load_settings
from command_gist.intents import Intent, describe
from command_gist.parse import parse_intent
from command_gist.safety import is_known_safe


def setup_logging(log_file: Path, level: int = logging.INFO) -> None:
    """Send decision events to log_file as JSON lines.

    The hook still answers when the log directory cannot be created or the
    file cannot be opened; events are then dropped.
    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            logger_factory=structlog.PrintLoggerFactory(file=file_handler.stream),
        )
    except Exception:
        pass  # no log, decisions still go to stdout


# Bound in main() once settings are loaded
log = None


def _log(level: str, **kwargs) -> None:
    """Emit one decision event; a broken log never changes the decision."""
    try:
        if log:
            getattr(log, level)(**kwargs)
    except Exception:
        pass


def gist(intents: list[Intent]) -> str:
    """One line for the whole command, e.g. "read foo.txt, list files"."""
    return ", ".join(describe(i) for i in intents)


def decision(permission: str, reason: str) -> dict:
    return {
        "hookSpecificOutput": {
            "hookEventName": "PreToolUse",
            "permissionDecision": permission,
            "permissionDecisionReason": reason,
        }
    }


# === Entry points ===


def main() -> None:
    global log
    settings = load_settings()
    setup_logging(settings["log_file"], settings["log_level"])
    log = structlog.get_logger()

    def defer_to_user(reason: str) -> None:
        """Print JSON to defer decision to user and exit."""
        print(json.dumps(decision("ask", reason)))
        sys.exit(0)

    try:
        input_data = json.load(sys.stdin)
        command = input_data.get("tool_input", {}).get("command", "")
    except (ValueError, AttributeError) as e:
        _log("warning", event="hook_input_invalid", error=str(e))
        defer_to_user("Could not read tool input")
    if not isinstance(command, str):
        _log("warning", event="hook_input_invalid", error="command is not a string")
        defer_to_user("Could not read tool input")

    if not command.strip():
        _log("info", event="hook_deferred", command=command, reason="empty_command")
        defer_to_user("Empty command")

    argv = ["bash", "-lc", command]
    summary = gist(parse_intent(argv))
    if not is_known_safe(argv):
        _log("info", event="hook_deferred", command=command, reason="not_known_safe", gist=summary)
        defer_to_user(f"Command requires approval: {summary}")

    _log("info", event="hook_approved", command=command, gist=summary)
    print(json.dumps(decision("allow", f"read-only: {summary}")))
    sys.exit(0)


def gist_main(args: list[str] | None = None) -> None:
    """Print {"known_safe": ..., "intents": [...]} for the argv after `--`."""
    if args is None:
        args = sys.argv[1:]
    if args[:1] == ["--"]:
        args = args[1:]
    if not args:
        print("usage: command-gist -- PROGRAM [ARGS...]", file=sys.stderr)
        sys.exit(2)
    print(json.dumps({
        "known_safe": is_known_safe(args),
        "intents": [i.to_dict() for i in parse_intent(args)],
    }))
