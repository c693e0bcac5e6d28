import io
import os
import signal
import sys

import pytest

from minishellpy.builtins import ShellExit
from minishellpy.environment import Environment
from minishellpy.executor import Executor, exit_status_from_returncode, find_cmd_path
from minishellpy.lexer import tokenize
from minishellpy.parser import Command, Separator, parse
from minishellpy.tree import build_tree


def make_executor(env=None, read_line=None, stdin_text=""):
    if env is None:
        env = Environment.from_mapping(os.environ)
    out, err = io.StringIO(), io.StringIO()
    executor = Executor(env, io.StringIO(stdin_text), out, err, read_line)
    return executor, out, err


def make_script(path):
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


def py(code):
    return [sys.executable, "-c", code]


def test_find_cmd_path_direct(tmp_path):
    script = make_script(tmp_path / "tool")
    assert find_cmd_path(str(script), Environment()) == str(script)


def test_find_cmd_path_searches_path_in_order(tmp_path):
    first = tmp_path / "a"
    second = tmp_path / "b"
    first.mkdir()
    second.mkdir()
    make_script(second / "tool")
    make_script(first / "tool")
    env = Environment([f"PATH=/nonexistent-dir:{second}:{first}"])
    assert find_cmd_path("tool", env) == f"{second}/tool"


def test_find_cmd_path_not_found(tmp_path):
    plain = tmp_path / "plain"
    plain.write_text("data")
    plain.chmod(0o644)
    assert find_cmd_path("plain", Environment([f"PATH={tmp_path}"])) is None
    assert find_cmd_path("tool", Environment(["HOME=/"])) is None


@pytest.mark.parametrize(
    "returncode, expected",
    [
        (0, 0),
        (3, 3),
        (-signal.SIGINT, 130),
        (-signal.SIGQUIT, 131),
        (-signal.SIGTERM, 0),
    ],
)
def test_exit_status_from_returncode(returncode, expected):
    assert exit_status_from_returncode(returncode) == expected


def test_builtin_echo():
    executor, out, _ = make_executor()
    assert executor.execute_command(Command(args=["echo", "hi"])) == 0
    assert out.getvalue() == "hi\n"


def test_output_redirection_truncates_and_appends(tmp_path):
    target = tmp_path / "out.txt"
    executor, out, _ = make_executor()
    executor.execute_command(Command(args=["echo", "old"], output_file=str(target)))
    executor.execute_command(Command(args=["echo", "a"], output_file=str(target)))
    executor.execute_command(
        Command(args=["echo", "b"], output_file=str(target), append=True)
    )
    assert target.read_text() == "a\nb\n"
    assert out.getvalue() == ""


def test_missing_input_file(tmp_path):
    executor, _, err = make_executor()
    command = Command(args=["echo", "x"], input_file=str(tmp_path / "missing"))
    assert executor.execute_command(command) == 1
    assert err.getvalue().startswith("minishell: ")


def test_input_redirection_feeds_program(tmp_path):
    source = tmp_path / "in.txt"
    source.write_text("abc\n")
    executor, out, _ = make_executor()
    command = Command(
        args=py("import sys; sys.stdout.write(sys.stdin.read().upper())"),
        input_file=str(source),
    )
    assert executor.execute_command(command) == 0
    assert out.getvalue() == "ABC\n"


def test_command_not_found(tmp_path):
    executor, _, err = make_executor(Environment([f"PATH={tmp_path}"]))
    command = Command(args=["no-such-command-here"])
    assert executor.execute_command(command) == 127
    assert err.getvalue() == "minishell: command not found: no-such-command-here\n"


def test_empty_command_fails():
    executor, _, _ = make_executor()
    assert executor.execute_command(Command()) == 1


def test_external_output_and_status():
    executor, out, _ = make_executor()
    assert executor.execute_command(Command(args=py("print('hello')"))) == 0
    assert out.getvalue() == "hello\n"
    assert executor.execute_command(Command(args=py("raise SystemExit(3)"))) == 3


def test_external_killed_by_sigint():
    executor, _, _ = make_executor()
    code = (
        "import os, signal; signal.signal(signal.SIGINT, signal.SIG_DFL); "
        "os.kill(os.getpid(), signal.SIGINT)"
    )
    assert executor.execute_command(Command(args=py(code))) == 130


def test_program_receives_environment():
    env = Environment.from_mapping(os.environ)
    env.set("GREETING", "bonjour")
    executor, out, _ = make_executor(env)
    code = "import os; print(os.environ['GREETING'])"
    assert executor.execute_command(Command(args=py(code))) == 0
    assert out.getvalue() == "bonjour\n"


def test_pipe_passes_output():
    executor, out, _ = make_executor()
    commands = [
        Command(args=["echo", "hello"], separator=Separator.PIPE),
        Command(args=py("import sys; sys.stdout.write(sys.stdin.read().upper())")),
    ]
    assert executor.execute(build_tree(commands)) == 0
    assert out.getvalue() == "HELLO\n"


def test_pipe_sides_do_not_change_shell(tmp_path):
    env = Environment.from_mapping(os.environ)
    env.unset("PIPED")
    executor, out, _ = make_executor(env)
    before = os.getcwd()
    commands = [
        Command(args=["export", "PIPED=1"], separator=Separator.PIPE),
        Command(args=["cd", str(tmp_path)], separator=Separator.PIPE),
        Command(args=["echo", "x"]),
    ]
    assert executor.execute(build_tree(commands)) == 0
    assert env.get("PIPED") is None
    assert os.getcwd() == before
    assert out.getvalue() == "x\n"


def test_exit_inside_pipe_gives_status():
    executor, _, _ = make_executor()
    commands = [
        Command(args=["echo", "x"], separator=Separator.PIPE),
        Command(args=["exit", "4"]),
    ]
    assert executor.execute(build_tree(commands)) == 4


def test_exit_at_top_level_raises():
    executor, out, _ = make_executor()
    with pytest.raises(ShellExit) as info:
        executor.execute(build_tree([Command(args=["exit", "7"])]))
    assert info.value.status == 7
    assert out.getvalue() == "exit\n"


def test_and_or(tmp_path):
    missing = str(tmp_path / "missing")
    executor, out, _ = make_executor()
    failing_and = [
        Command(args=["cd", missing], separator=Separator.AND),
        Command(args=["echo", "yes"]),
    ]
    assert executor.execute(build_tree(failing_and)) == 1
    assert out.getvalue() == ""
    failing_or = [
        Command(args=["cd", missing], separator=Separator.OR),
        Command(args=["echo", "yes"]),
    ]
    assert executor.execute(build_tree(failing_or)) == 0
    assert out.getvalue() == "yes\n"


def test_heredoc_reads_until_limiter():
    lines = iter(["one", "two", "EOF", "after"])
    prompts = []

    def read_line(prompt):
        prompts.append(prompt)
        return next(lines)

    executor, out, _ = make_executor(read_line=read_line)
    command = Command(
        args=py("import sys; sys.stdout.write(sys.stdin.read())"),
        heredoc_limiter="EOF",
    )
    assert executor.execute_command(command) == 0
    assert out.getvalue() == "one\ntwo\n"
    assert prompts == ["> ", "> ", "> "]


def test_heredoc_ends_at_end_of_input():
    lines = iter(["only"])
    executor, out, _ = make_executor(read_line=lambda prompt: next(lines, None))
    command = Command(
        args=py("import sys; sys.stdout.write(sys.stdin.read())"),
        heredoc_limiter="STOP",
    )
    executor.execute_command(command)
    assert out.getvalue() == "only\n"


def test_group_in_tree_runs_in_place():
    env = Environment.from_mapping(os.environ)
    executor, _, _ = make_executor(env)
    tree = build_tree(parse(tokenize("(export GROUPED=1)"), env, 0))
    assert executor.execute(tree) == 0
    assert env.get("GROUPED") == "1"


def test_group_output_redirection(tmp_path):
    target = tmp_path / "group.txt"
    env = Environment.from_mapping(os.environ)
    executor, out, _ = make_executor(env)
    tree = build_tree(parse(tokenize(f"(echo hi) > {target}"), env, 0))
    assert executor.execute(tree) == 0
    assert target.read_text() == "hi\n"
    assert out.getvalue() == ""


def test_execute_command_isolates_group():
    env = Environment.from_mapping(os.environ)
    executor, out, _ = make_executor(env)
    command = parse(tokenize("(export ISOLATED=2 && echo inside)"), env, 0)[0]
    assert command.is_subshell
    assert executor.execute_command(command) == 0
    assert env.get("ISOLATED") is None
    assert out.getvalue() == "inside\n"