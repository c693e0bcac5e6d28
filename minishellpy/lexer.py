"""Split a command line into shell tokens."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterator

WHITESPACE = " \t\n\v\f\r"
SPECIAL = "|<>'\"()"
QUOTES = "'\""


class TokenType(enum.Enum):
    """Kinds of token produced by the lexer."""

    WORD = enum.auto()
    PIPE = enum.auto()
    REDIR_IN = enum.auto()
    REDIR_OUT = enum.auto()
    APPEND = enum.auto()
    HEREDOC = enum.auto()
    AND = enum.auto()
    OR = enum.auto()
    LP = enum.auto()
    RP = enum.auto()
    EOF = enum.auto()


@dataclass(frozen=True)
class Token:
    """A lexical token; ``quote`` is the quote character a word was written in."""

    type: TokenType
    value: str
    quote: str = ""


class LexerError(ValueError):
    """Raised when a command line cannot be tokenized."""


_OPERATORS = (
    ("||", TokenType.OR),
    ("&&", TokenType.AND),
    ("<<", TokenType.HEREDOC),
    (">>", TokenType.APPEND),
    ("|", TokenType.PIPE),
    ("<", TokenType.REDIR_IN),
    (">", TokenType.REDIR_OUT),
    ("(", TokenType.LP),
    (")", TokenType.RP),
)

_WORD_RE = re.compile("[^" + re.escape(SPECIAL + WHITESPACE) + "]+")
_ANY_QUOTE_RE = re.compile("[" + re.escape(QUOTES) + "]")


def is_whitespace(char: str) -> bool:
    """Return True for a space or one of the ASCII control whitespace characters."""
    return len(char) == 1 and char in WHITESPACE


def is_special(char: str) -> bool:
    """Return True for characters that end a bare word."""
    return len(char) == 1 and char in SPECIAL


def _read_quoted(text: str, pos: int) -> tuple[Token, int]:
    quote = text[pos]
    start = pos + 1
    match = _ANY_QUOTE_RE.search(text, start)
    if match is None:
        raise LexerError("Syntax error: unclosed quotes")
    if match.group() != quote:
        raise LexerError("Syntax error: mismatched quotes")
    end = match.start()
    return Token(TokenType.WORD, text[start:end], quote), end + 1


def _scan(text: str) -> Iterator[Token]:
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if is_whitespace(char):
            pos += 1
            continue
        if char in QUOTES:
            token, pos = _read_quoted(text, pos)
            yield token
            continue
        for symbol, kind in _OPERATORS:
            if text.startswith(symbol, pos):
                yield Token(kind, symbol)
                pos += len(symbol)
                break
        else:
            match = _WORD_RE.match(text, pos)
            # Any character reaching here is neither whitespace nor special.
            assert match is not None
            yield Token(TokenType.WORD, match.group())
            pos = match.end()


def tokenize(text: str) -> list[Token]:
    """Tokenize ``text``; the result always ends with an EOF token.

    Raises LexerError on unclosed or mismatched quotes.
    """
    tokens = list(_scan(text))
    tokens.append(Token(TokenType.EOF, "EOF"))
    return tokens