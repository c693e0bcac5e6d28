"""Commands the shell runs itself instead of starting a program."""

from __future__ import annotations

import os
import sys
from typing import Optional, Sequence, TextIO

from .environment import Environment

BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})

_WHITESPACE = " \t\n\v\f\r"
_MAX_EXIT_DIGITS = 19


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def _stream(stream: Optional[TextIO], default: TextIO) -> TextIO:
    return default if stream is None else stream


def is_builtin(name: str) -> bool:
    """Return True if ``name`` is one of the shell's own commands."""
    return name in BUILTINS


def parse_int(text: str) -> int:
    """Read a leading integer: skip whitespace, take one sign, then digits.

    Anything after the digits is ignored; no digits give 0.
    """
    rest = text.lstrip(_WHITESPACE)
    sign = 1
    if rest[:1] in ("-", "+"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    digits = ""
    for char in rest:
        if not "0" <= char <= "9":
            break
        digits += char
    return sign * int(digits) if digits else 0


def is_valid_n_option(arg: Optional[str]) -> bool:
    """Return True for ``-n``, ``-nn`` and so on."""
    return bool(arg) and arg[0] == "-" and len(arg) > 1 and set(arg[1:]) == {"n"}


def echo(args: Sequence[str], out: Optional[TextIO] = None) -> int:
    """Print the arguments separated by spaces; leading ``-n`` options drop the newline."""
    out = _stream(out, sys.stdout)
    words = list(args[1:])
    skipped = 0
    while skipped < len(words) and is_valid_n_option(words[skipped]):
        skipped += 1
    out.write(" ".join(words[skipped:]))
    if skipped == 0:
        out.write("\n")
    return 0


def _change_dir(
    target: str, env: Environment, old_pwd: str, err: TextIO
) -> bool:
    try:
        os.chdir(target)
    except OSError as exc:
        err.write(f"minishell: cd: {exc.strerror}\n")
        return False
    try:
        new_pwd = os.getcwd()
    except OSError as exc:
        err.write(f"minishell: getcwd: {exc.strerror}\n")
        return False
    env.set("PWD", new_pwd)
    env.set("OLDPWD", old_pwd)
    return True


def cd(
    args: Sequence[str],
    env: Environment,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Change directory to the argument, ``$HOME`` without one, or ``$OLDPWD`` for ``-``.

    Updates ``PWD`` and ``OLDPWD`` on success.
    """
    out = _stream(out, sys.stdout)
    err = _stream(err, sys.stderr)
    try:
        old_pwd = os.getcwd()
    except OSError as exc:
        err.write(f"minishell: getcwd: {exc.strerror}\n")
        return 1
    if len(args) < 2:
        home = env.get("HOME")
        if home is None:
            err.write("minishell: cd: HOME not set\n")
            return 1
        return 0 if _change_dir(home, env, old_pwd, err) else 1
    if args[1] == "-":
        previous = env.get("OLDPWD")
        if previous is None:
            err.write("minishell: cd: OLDPWD not set\n")
            return 1
        if not _change_dir(previous, env, old_pwd, err):
            return 1
        out.write(f"{previous}\n")
        return 0
    return 0 if _change_dir(args[1], env, old_pwd, err) else 1


def pwd(out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> int:
    """Print the current working directory."""
    out = _stream(out, sys.stdout)
    err = _stream(err, sys.stderr)
    try:
        current = os.getcwd()
    except OSError as exc:
        err.write(f"minishell: pwd: {exc.strerror}\n")
        return 1
    out.write(f"{current}\n")
    return 0


def export(
    args: Sequence[str], env: Environment, out: Optional[TextIO] = None
) -> int:
    """Set each ``NAME=value`` argument; without arguments list the environment.

    Arguments without ``=`` are ignored.
    """
    out = _stream(out, sys.stdout)
    if len(args) < 2:
        for entry in env.entries():
            out.write(f"declare -x {entry}\n")
        return 0
    for arg in args[1:]:
        name, sep, value = arg.partition("=")
        if sep:
            env.set(name, value)
    return 0


def unset(args: Sequence[str], env: Environment) -> int:
    """Remove each named variable from the environment."""
    for name in args[1:]:
        env.unset(name)
    return 0


def env_command(env: Environment, out: Optional[TextIO] = None) -> int:
    """Print every environment entry on its own line."""
    out = _stream(out, sys.stdout)
    for entry in env.entries():
        out.write(f"{entry}\n")
    return 0


def _is_numeric(arg: str) -> bool:
    digits = arg[1:] if arg[:1] in ("-", "+") else arg
    return all("0" <= char <= "9" for char in digits) and len(digits) <= _MAX_EXIT_DIGITS


def exit_command(args: Sequence[str], out: Optional[TextIO] = None) -> int:
    """Print ``exit`` and raise ShellExit with the requested status.

    A non-numeric argument exits with status 2. A numeric argument followed by
    more arguments prints an error and returns 1 without exiting.
    """
    out = _stream(out, sys.stdout)
    code = 0
    if len(args) > 1:
        arg = args[1]
        if _is_numeric(arg):
            code = parse_int(arg)
            if len(args) > 2:
                out.write("minishell: exit: too many arguments\n")
                return 1
        else:
            out.write(f"minishell: exit: {arg}: numeric argument required\n")
            code = 2
    out.write("exit\n")
    raise ShellExit(code & 0xFF)


def run_builtin(
    args: Sequence[str],
    env: Environment,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> Optional[int]:
    """Run ``args`` as a builtin and return its status, or None if it is not one."""
    if not args:
        return None
    name = args[0]
    if name == "echo":
        return echo(args, out)
    if name == "cd":
        return cd(args, env, out, err)
    if name == "pwd":
        return pwd(out, err)
    if name == "export":
        return export(args, env, out)
    if name == "unset":
        return unset(args, env)
    if name == "env":
        return env_command(env, out)
    if name == "exit":
        return exit_command(args, out)
    return None