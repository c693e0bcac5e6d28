"""Turn a token list into a flat list of commands joined by separators."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Sequence

from .expand import expand_variables
from .lexer import Token, TokenType
from .wildcards import expand_args


class _Lookup(Protocol):
    def get(self, name: str) -> Optional[str]: ...


class Separator(enum.Enum):
    """The operator that follows a command."""

    NONE = enum.auto()
    PIPE = enum.auto()
    AND = enum.auto()
    OR = enum.auto()
    END = enum.auto()


@dataclass
class Command:
    """One simple command, or a parenthesised group when ``is_subshell`` is set."""

    args: list[str] = field(default_factory=list)
    input_file: Optional[str] = None
    output_file: Optional[str] = None
    heredoc_limiter: Optional[str] = None
    append: bool = False
    separator: Separator = Separator.NONE
    is_subshell: bool = False
    subshell: list["Command"] = field(default_factory=list)

    @property
    def has_redirections(self) -> bool:
        """True if the command reads from or writes to a file or a here-document."""
        return bool(self.input_file or self.output_file or self.heredoc_limiter)


class ParseError(ValueError):
    """Raised when the tokens do not form a valid command line."""


_SEPARATORS = {
    TokenType.PIPE: Separator.PIPE,
    TokenType.AND: Separator.AND,
    TokenType.OR: Separator.OR,
}

_REDIRECTS = frozenset(
    {TokenType.REDIR_IN, TokenType.REDIR_OUT, TokenType.APPEND, TokenType.HEREDOC}
)

_COMMAND_END = frozenset(
    {TokenType.AND, TokenType.OR, TokenType.EOF, TokenType.PIPE, TokenType.RP}
)


def _expand_word(token: Token, env: _Lookup, exit_status: int) -> str:
    if token.quote == "'":
        return token.value
    return expand_variables(token.value, env, exit_status)


def _take_redirect(
    tokens: Sequence[Token], pos: int, cmd: Command, env: _Lookup, exit_status: int
) -> int:
    """Apply the redirection at ``pos`` to ``cmd`` and return the next position."""
    kind = tokens[pos].type
    pos += 1
    if pos < len(tokens) and tokens[pos].type is TokenType.WORD:
        target = _expand_word(tokens[pos], env, exit_status)
        if kind is TokenType.REDIR_IN:
            cmd.input_file = target
        elif kind is TokenType.REDIR_OUT:
            cmd.output_file = target
        elif kind is TokenType.APPEND:
            cmd.output_file = target
            cmd.append = True
        elif kind is TokenType.HEREDOC:
            cmd.heredoc_limiter = target
        pos += 1
    return pos


def parse_range(tokens: Iterable[Token], env: _Lookup, exit_status: int) -> list[Command]:
    """Parse the tokens found inside a pair of parentheses.

    Parentheses nested inside the range are ignored, so their contents join
    the surrounding list. Wildcards are not expanded here.
    """
    items = list(tokens)
    commands: list[Command] = []
    pos = 0
    while pos < len(items):
        cmd = Command()
        while pos < len(items) and items[pos].type not in _SEPARATORS:
            token = items[pos]
            if token.type is TokenType.WORD:
                cmd.args.append(_expand_word(token, env, exit_status))
                pos += 1
            elif token.type in _REDIRECTS:
                pos = _take_redirect(items, pos, cmd, env, exit_status)
            else:
                pos += 1
        if pos < len(items):
            cmd.separator = _SEPARATORS[items[pos].type]
            pos += 1
        else:
            cmd.separator = Separator.END
        commands.append(cmd)
    return commands


def _parse_parentheses(
    tokens: Sequence[Token], pos: int, env: _Lookup, exit_status: int
) -> tuple[list[Command], int]:
    """Parse the group opened at ``pos``; return its commands and the position after it."""
    start = pos + 1
    depth = 1
    for index in range(start, len(tokens)):
        kind = tokens[index].type
        if kind is TokenType.LP:
            depth += 1
        elif kind is TokenType.RP:
            depth -= 1
            if depth == 0:
                return parse_range(tokens[start:index], env, exit_status), index + 1
    raise ParseError("syntax error: unclosed parenthesis")


def _fill_command(
    tokens: Sequence[Token], pos: int, cmd: Command, env: _Lookup, exit_status: int
) -> int:
    while pos < len(tokens) and tokens[pos].type not in _COMMAND_END:
        token = tokens[pos]
        if token.type is TokenType.LP:
            cmd.subshell, pos = _parse_parentheses(tokens, pos, env, exit_status)
            cmd.is_subshell = True
        elif token.type is TokenType.WORD:
            cmd.args.append(_expand_word(token, env, exit_status))
            pos += 1
        else:
            pos = _take_redirect(tokens, pos, cmd, env, exit_status)
    return pos


def parse(
    tokens: Iterable[Token], env: _Lookup, exit_status: int, directory: str = "."
) -> list[Command]:
    """Parse a token list into commands, expanding variables and wildcards.

    Wildcards in top-level arguments are matched against ``directory``.
    Raises ParseError on an unclosed or unexpected parenthesis.
    """
    items = list(tokens)
    commands: list[Command] = []
    pos = 0
    while pos < len(items) and items[pos].type is not TokenType.EOF:
        cmd = Command()
        pos = _fill_command(items, pos, cmd, env, exit_status)
        if pos < len(items) and items[pos].type is TokenType.RP:
            raise ParseError("syntax error near unexpected token `)'")
        kind = items[pos].type if pos < len(items) else TokenType.EOF
        cmd.separator = _SEPARATORS.get(kind, Separator.END)
        commands.append(cmd)
        if kind in _SEPARATORS:
            pos += 1
    for cmd in commands:
        cmd.args = expand_args(cmd.args, directory)
    return commands