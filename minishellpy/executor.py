"""Run an execution tree: builtins, external programs, pipes and redirections."""

from __future__ import annotations

import contextlib
import io
import os
import signal
import subprocess
import sys
from typing import Callable, Iterator, Optional, TextIO

from .builtins import ShellExit, run_builtin
from .environment import Environment
from .parser import Command
from .tree import NodeType, TreeNode, build_tree

ReadLine = Callable[[str], Optional[str]]

HEREDOC_PROMPT = "> "

_SIGINT = signal.SIGINT
_SIGQUIT = getattr(signal, "SIGQUIT", None)
_SHELTERED_SIGNALS = tuple(sig for sig in (_SIGINT, _SIGQUIT) if sig is not None)


def _prompt_line(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def _fileno(stream: TextIO) -> Optional[int]:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _decode(data: Optional[bytes]) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


def _ignore_signal(signum, frame) -> None:
    """Swallow the signal in the shell; a started program gets the default action."""


@contextlib.contextmanager
def _sheltered_from_signals() -> Iterator[None]:
    """Keep interrupts from reaching the shell while it waits for a program.

    A Python-level handler, unlike SIG_IGN, is reset to the default when the
    child program starts, so the child can still be interrupted.
    """
    saved = {}
    try:
        for sig in _SHELTERED_SIGNALS:
            saved[sig] = signal.signal(sig, _ignore_signal)
    except ValueError:
        pass  # not the main thread: signals cannot be changed here
    try:
        yield
    finally:
        for sig, handler in saved.items():
            if handler is not None:
                signal.signal(sig, handler)


def find_cmd_path(name: str, env: Environment) -> Optional[str]:
    """Locate the executable for ``name``.

    A name holding ``/`` is used as is when it is executable; otherwise each
    ``PATH`` directory is tried in order. Returns None when nothing is found.
    """
    if "/" in name and os.access(name, os.X_OK):
        return name
    for directory in env.path_dirs():
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def exit_status_from_returncode(returncode: int) -> int:
    """Turn a subprocess return code into a shell status.

    Death by SIGINT gives 130 and by SIGQUIT 131; death by any other signal
    gives 0, as its exit-status byte is empty.
    """
    if returncode >= 0:
        return returncode
    sig = -returncode
    if _SIGQUIT is not None and sig == _SIGQUIT:
        return 131
    if sig == _SIGINT:
        return 130
    return 0


def _current_dir() -> Optional[str]:
    try:
        return os.getcwd()
    except OSError:
        return None


class Executor:
    """Execute trees built from parsed command lines against an environment."""

    def __init__(
        self,
        env: Environment,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        read_line: Optional[ReadLine] = None,
    ) -> None:
        self.env = env
        self.stdin = sys.stdin if stdin is None else stdin
        self.stdout = sys.stdout if stdout is None else stdout
        self.stderr = sys.stderr if stderr is None else stderr
        self.read_line = _prompt_line if read_line is None else read_line

    def _error(self, message: str) -> None:
        self.stderr.write(message + "\n")

    def _child(
        self, stdin: TextIO, stdout: TextIO, env: Optional[Environment] = None
    ) -> "Executor":
        return Executor(
            self.env if env is None else env, stdin, stdout, self.stderr, self.read_line
        )

    def execute(self, node: Optional[TreeNode]) -> int:
        """Run ``node`` and return its exit status; ShellExit from ``exit`` propagates."""
        if node is None:
            return 0
        if node.type is NodeType.COMMAND:
            command = node.command
            if command is None:
                return 1
            if command.is_subshell and node.subshell is not None:
                return self._execute_group_in_place(command, node.subshell)
            return self.execute_command(command)
        if node.type is NodeType.PIPE:
            return self._execute_pipe(node)
        if node.type is NodeType.AND:
            status = self.execute(node.left)
            if status == 0:
                status = self.execute(node.right)
            return status
        if node.type is NodeType.OR:
            status = self.execute(node.left)
            if status != 0:
                status = self.execute(node.right)
            return status
        return 0

    def execute_command(self, command: Command) -> int:
        """Run one command: a group in its own context, a builtin, or a program."""
        if command.is_subshell:
            return self._execute_group_isolated(command)
        if not command.args:
            return 1
        with contextlib.ExitStack() as stack:
            streams = self._open_redirections(stack, command)
            if streams is None:
                return 1
            stdin, stdout = streams
            status = run_builtin(command.args, self.env, stdout, self.stderr)
            if status is not None:
                return status
            return self._run_external(command.args, stdin, stdout)

    def _open_redirections(
        self, stack: contextlib.ExitStack, command: Command
    ) -> Optional[tuple[TextIO, TextIO]]:
        """Open the command's input, here-document and output, in that order."""
        stdin, stdout = self.stdin, self.stdout
        try:
            if command.input_file is not None:
                stdin = stack.enter_context(open(command.input_file, encoding="utf-8"))
            if command.heredoc_limiter is not None:
                stdin = io.StringIO(self._read_heredoc(command.heredoc_limiter))
            if command.output_file is not None:
                flags = os.O_WRONLY | os.O_CREAT
                flags |= os.O_APPEND if command.append else os.O_TRUNC
                fd = os.open(command.output_file, flags, 0o644)
                stdout = stack.enter_context(os.fdopen(fd, "w", encoding="utf-8"))
        except OSError as exc:
            self._error(f"minishell: {exc.strerror}")
            return None
        return stdin, stdout

    def _read_heredoc(self, limiter: str) -> str:
        lines = []
        while True:
            line = self.read_line(HEREDOC_PROMPT)
            if line is None or line == limiter:
                break
            lines.append(line + "\n")
        return "".join(lines)

    def _run_external(self, args: list[str], stdin: TextIO, stdout: TextIO) -> int:
        path = find_cmd_path(args[0], self.env)
        if path is None:
            self._error(f"minishell: command not found: {args[0]}")
            return 127
        in_fd = _fileno(stdin)
        out_fd = _fileno(stdout)
        err_fd = _fileno(self.stderr)
        stdout.flush()
        self.stderr.flush()
        kwargs: dict = {
            "executable": path,
            "env": self.env.as_dict(),
            "stdout": out_fd if out_fd is not None else subprocess.PIPE,
            "stderr": err_fd if err_fd is not None else subprocess.PIPE,
        }
        if in_fd is None:
            kwargs["input"] = stdin.read().encode("utf-8")
        else:
            kwargs["stdin"] = in_fd
        with _sheltered_from_signals():
            try:
                result = subprocess.run(list(args), **kwargs)
            except OSError as exc:
                self._error(f"minishell: {exc.strerror}")
                return 1
        if out_fd is None:
            stdout.write(_decode(result.stdout))
        if err_fd is None:
            self.stderr.write(_decode(result.stderr))
        if _SIGQUIT is not None and result.returncode == -_SIGQUIT:
            self.stderr.write("Quit (core dumped)\n")
        return exit_status_from_returncode(result.returncode)

    def _isolated(self, node: Optional[TreeNode], stdin: TextIO, stdout: TextIO) -> int:
        """Run ``node`` as a separate process would: its changes stay with it."""
        child = self._child(stdin, stdout, Environment(self.env.entries()))
        saved_dir = _current_dir()
        try:
            return child.execute(node)
        except ShellExit as exc:
            return exc.status
        finally:
            if saved_dir is not None and _current_dir() != saved_dir:
                with contextlib.suppress(OSError):
                    os.chdir(saved_dir)

    def _execute_pipe(self, node: TreeNode) -> int:
        buffer = io.StringIO()
        self._isolated(node.left, self.stdin, buffer)
        return self._isolated(node.right, io.StringIO(buffer.getvalue()), self.stdout)

    def _execute_group_in_place(self, command: Command, tree: TreeNode) -> int:
        with contextlib.ExitStack() as stack:
            streams = self._open_redirections(stack, command)
            if streams is None:
                return 1
            return self._child(*streams).execute(tree)

    def _execute_group_isolated(self, command: Command) -> int:
        with contextlib.ExitStack() as stack:
            streams = self._open_redirections(stack, command)
            if streams is None:
                return 1
            return self._isolated(build_tree(command.subshell), *streams)