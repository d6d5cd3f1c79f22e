"""Test cases for per-program summaries and the simplifier."""

import pytest

from command_gist.intents import ListFiles, Read, Search, Unknown
from command_gist.summary import (
    drop_small_formatting_commands,
    is_small_formatting_command,
    join_paths,
    short_display_path,
    simplify,
    simplify_once,
    summarize_main_tokens,
    summarize_segments,
)

# (tokens, expected)
TESTS = [
    # ls
    (["ls"], ListFiles(cmd="ls")),
    (["ls", "-la"], ListFiles(cmd="ls -la")),
    (["ls", "-la", "webview/src"], ListFiles(cmd="ls -la webview/src", path="webview")),
    (["ls", "-I", "*.test.js"], ListFiles(cmd="ls -I '*.test.js'")),
    (["ls", "-I", "*.pyc", "docs"], ListFiles(cmd="ls -I '*.pyc' docs", path="docs")),
    (["ls", "--time-style=long-iso", "./dist"], ListFiles(cmd="ls --time-style=long-iso ./dist", path=".")),
    # rg
    (["rg", "-n", "foo", "src"], Search(cmd="rg -n foo src", query="foo", path="src")),
    (["rg", "--colors=never", "-n", "foo", "src"], Search(cmd="rg --colors=never -n foo src", query="foo", path="src")),
    (["rg", "--version"], Search(cmd="rg --version")),
    (["rg", "--files"], Search(cmd="rg --files")),
    (["rg", "--files", "webview/src"], Search(cmd="rg --files webview/src", path="webview")),
    (["rg", "--files", "-g", "*.rs"], Search(cmd="rg --files -g '*.rs'", path="*.rs")),
    (["rg", "--files", "--glob=*.md"], Search(cmd="rg --files '--glob=*.md'", path="*.md")),
    (["rg", "-g", "*.rs", "TODO", "core"], Search(cmd="rg -g '*.rs' TODO core", query="TODO", path="core")),
    # fd
    (["fd", "-t", "f", "src/"], Search(cmd="fd -t f src/", path="src")),
    (["fd", "main", "src"], Search(cmd="fd main src", query="main", path="src")),
    (["fd", "main"], Search(cmd="fd main", query="main")),
    (["fd", "./lib"], Search(cmd="fd ./lib", path="lib")),
    (["fd", "-e", "rs", "mod", "core/lib"], Search(cmd="fd -e rs mod core/lib", query="mod", path="lib")),
    # find
    (["find", ".", "-name", "*.rs"], Search(cmd="find . -name '*.rs'", query="*.rs", path=".")),
    (["find", "src", "-type", "f"], Search(cmd="find src -type f", path="src")),
    (["find", "app/models", "-iname", "user*"], Search(cmd="find app/models -iname 'user*'", query="user*", path="models")),
    # grep
    (["grep", "-R", "TODO", "src"], Search(cmd="grep -R TODO src", query="TODO", path="src")),
    (["grep", "-R", "src/main.rs", "-n", "."], Search(cmd="grep -R src/main.rs -n .", query="src/main.rs", path=".")),
    (["grep", "-R", "X", "-n", "core/src/spawn.rs"], Search(cmd="grep -R X -n core/src/spawn.rs", query="X", path="spawn.rs")),
    (["grep", "-R", "COD`EX_SANDBOX", "-n"], Search(cmd="grep -R 'COD`EX_SANDBOX' -n", query="COD`EX_SANDBOX")),
    # cat
    (["cat", "webview/README.md"], Read(cmd="cat webview/README.md", name="README.md", path="webview/README.md")),
    (["cat", "--", "./-strange-file-name"], Read(cmd="cat -- ./-strange-file-name", name="-strange-file-name", path="./-strange-file-name")),
    (["cat", "pkg\\src\\main.rs"], Read(cmd="cat 'pkg\\src\\main.rs'", name="main.rs", path="pkg\\src\\main.rs")),
    (["cat", "a", "b"], Unknown(cmd="cat a b")),
    (["cat"], Unknown(cmd="cat")),
    # head / tail
    (["head", "-n", "50", "Cargo.toml"], Read(cmd="head -n 50 Cargo.toml", name="Cargo.toml", path="Cargo.toml")),
    (["head", "-n50", "Cargo.toml"], Read(cmd="head -n50 Cargo.toml", name="Cargo.toml", path="Cargo.toml")),
    (["head", "Cargo.toml"], Unknown(cmd="head Cargo.toml")),
    (["head", "-n", "x", "Cargo.toml"], Unknown(cmd="head -n x Cargo.toml")),
    (["head", "-n", "50"], Unknown(cmd="head -n 50")),
    (["tail", "-n", "+522", "README.md"], Read(cmd="tail -n +522 README.md", name="README.md", path="README.md")),
    (["tail", "-n+10", "README.md"], Read(cmd="tail -n+10 README.md", name="README.md", path="README.md")),
    (["tail", "-n", "30", "README.md"], Read(cmd="tail -n 30 README.md", name="README.md", path="README.md")),
    (["tail", "-n", "+", "README.md"], Unknown(cmd="tail -n + README.md")),
    # nl
    (["nl", "-ba", "core/src/parse.rs"], Read(cmd="nl -ba core/src/parse.rs", name="parse.rs", path="core/src/parse.rs")),
    (["nl", "-s", ":", "f.rs"], Read(cmd="nl -s : f.rs", name="f.rs", path="f.rs")),
    (["nl", "-ba"], Unknown(cmd="nl -ba")),
    # sed
    (["sed", "-n", "1,5p", "file.txt"], Read(cmd="sed -n 1,5p file.txt", name="file.txt", path="file.txt")),
    (["sed", "-n", "12,20p", "Cargo.toml"], Read(cmd="sed -n 12,20p Cargo.toml", name="Cargo.toml", path="Cargo.toml")),
    (["sed", "-n", "p", "Cargo.toml"], Unknown(cmd="sed -n p Cargo.toml")),
    (["sed", "s/a/b/", "f"], Unknown(cmd="sed s/a/b/ f")),
    # everything else
    (["git", "status"], Unknown(cmd="git status")),
    (["npm", "run", "build"], Unknown(cmd="npm run build")),
    ([], Unknown(cmd="")),
]


@pytest.mark.parametrize("tokens,expected", TESTS)
def test_summarize(tokens, expected):
    assert summarize_main_tokens(tokens) == expected


SHORT_PATH_TESTS = [
    ("webview/src", "webview"),
    ("foo/src/", "foo"),
    ("src", "src"),
    ("core/src/parse_command.rs", "parse_command.rs"),
    ("C:\\Users\\User\\file.txt", "file.txt"),
    ("node_modules/pkg/dist", "pkg"),
    ("build/dist", "build/dist"),
    ("./dist", "."),
    ("", ""),
]


@pytest.mark.parametrize("path,expected", SHORT_PATH_TESTS)
def test_short_display_path(path, expected):
    assert short_display_path(path) == expected


JOIN_TESTS = [
    ("foo", "bar.txt", "foo/bar.txt"),
    ("foo/", "bar.txt", "foo/bar.txt"),
    ("foo", "/etc/hosts", "/etc/hosts"),
    ("foo", "C:\\x.txt", "C:\\x.txt"),
    ("foo", "\\\\server\\share\\x.txt", "\\\\server\\share\\x.txt"),
    ("a", "../b.txt", "a/../b.txt"),
]


@pytest.mark.parametrize("base,rel,expected", JOIN_TESTS)
def test_join_paths(base, rel, expected):
    assert join_paths(base, rel) == expected


def test_segments_follow_cd():
    commands = [["cd", "foo"], ["cat", "foo.txt"]]
    assert summarize_segments(commands) == [Read(cmd="cat foo.txt", name="foo.txt", path="foo/foo.txt")]


def test_segments_follow_nested_cd():
    commands = [["cd", "a"], ["cd", "b"], ["cat", "c.txt"], ["cd", "/abs"], ["cat", "d.txt"]]
    assert summarize_segments(commands) == [
        Read(cmd="cat c.txt", name="c.txt", path="a/b/c.txt"),
        Read(cmd="cat d.txt", name="d.txt", path="/abs/d.txt"),
    ]


def test_segments_bare_cd_is_consumed():
    assert summarize_segments([["cd"], ["ls"]]) == [ListFiles(cmd="ls")]


def test_segments_cd_leaves_searches_alone():
    assert summarize_segments([["cd", "codex-rs"], ["rg", "--files"]]) == [Search(cmd="rg --files")]


FORMATTING_TESTS = [
    (["wc"], True),
    (["wc", "-l"], True),
    (["tr", "-x"], True),
    (["cut", "-d", ":"], True),
    (["sort"], True),
    (["uniq", "-c"], True),
    (["xargs", "rm"], True),
    (["tee", "out"], True),
    (["column", "-t"], True),
    (["awk", "{print $1}"], True),
    (["yes"], True),
    (["printf", "x"], True),
    (["head"], True),
    (["head", "file.txt"], True),
    (["head", "-n", "40"], False),
    (["head", "-n", "40", "file.txt"], False),
    (["tail"], True),
    (["tail", "file.txt"], True),
    (["tail", "-n", "+10"], False),
    (["tail", "-n", "30", "file.txt"], False),
    (["sed"], True),
    (["sed", "-n", "10p"], True),
    (["sed", "-n", "10p", "file.txt"], False),
    (["sed", "-n", "1,200p", "file.txt"], False),
    (["sed", "-n", "p", "file.txt"], True),
    (["sed", "-n", "+10p", "file.txt"], True),
    (["rg", "foo"], False),
    ([], False),
]


@pytest.mark.parametrize("tokens,expected", FORMATTING_TESTS)
def test_small_formatting(tokens, expected):
    assert is_small_formatting_command(tokens) == expected


def test_drop_small_formatting_keeps_order():
    commands = [["rg", "foo"], ["head", "-n"], ["wc", "-l"], ["sed", "-n", "1,5p", "f"], ["cat", "x"]]
    assert drop_small_formatting_commands(commands) == [["rg", "foo"], ["sed", "-n", "1,5p", "f"], ["cat", "x"]]


READ = Read(cmd="cat a.txt", name="a.txt", path="a.txt")
LIST = ListFiles(cmd="ls")

SIMPLIFY_TESTS = [
    ([Unknown(cmd="echo hi"), READ], [READ]),
    ([Unknown(cmd="echo hi"), Unknown(cmd="echo there"), READ], [READ]),
    ([READ, Unknown(cmd="echo done")], [READ, Unknown(cmd="echo done")]),
    ([Unknown(cmd="cd foo"), LIST], [LIST]),
    ([LIST, Unknown(cmd="cd foo")], [LIST, Unknown(cmd="cd foo")]),
    ([LIST, Unknown(cmd="true")], [LIST]),
    ([Unknown(cmd="true"), LIST], [LIST]),
    ([Search(cmd="rg --files"), Unknown(cmd="nl -ba")], [Search(cmd="rg --files")]),
    ([Unknown(cmd="nl -ba f.rs"), READ], [Unknown(cmd="nl -ba f.rs"), READ]),
    ([Unknown(cmd="echo hi")], [Unknown(cmd="echo hi")]),
    ([Unknown(cmd="true")], [Unknown(cmd="true")]),
    ([], []),
]


@pytest.mark.parametrize("intents,expected", SIMPLIFY_TESTS)
def test_simplify(intents, expected):
    assert simplify(intents) == expected


@pytest.mark.parametrize("intents,_", SIMPLIFY_TESTS)
def test_simplify_is_idempotent(intents, _):
    once = simplify(intents)
    assert simplify(once) == once
    assert simplify_once(once) is None


@pytest.mark.parametrize("intents,_", SIMPLIFY_TESTS)
def test_simplify_never_empties(intents, _):
    if intents:
        assert simplify(intents)
