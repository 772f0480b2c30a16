"""
Lexer (tokenizer) for nginx-like configuration syntax.

Supports:
- Identifiers (directive and block names)
- Quoted strings (single or double quotes with escape sequences)
- Numbers and durations (10s, 5m, 1h, 500ms)
- Booleans (on, off, true, false)
- Braces, semicolons and # comments
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Token types for the config syntax."""

    IDENTIFIER = auto()    # directive name, bare word
    STRING = auto()        # "quoted string"
    NUMBER = auto()        # 123, 45.67
    DURATION = auto()      # 10s, 5m, 1h, 30ms
    BOOLEAN = auto()       # on, off, true, false

    LBRACE = auto()        # {
    RBRACE = auto()        # }
    SEMICOLON = auto()     # ;

    EOF = auto()


@dataclass
class Token:
    """A single token from the lexer."""

    type: TokenType
    value: str | int | float | bool
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class LexerError(Exception):
    """Exception raised for lexer errors."""

    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"Line {line}, column {column}: {message}")


class Lexer:
    """
    Tokenizer for nginx-like configuration syntax.

    Example config:
        web {
            listen_address ":9365";
        }

        collectors {
            sensor on;
            version off;
        }
    """

    BOOLEAN_KEYWORDS = {"on": True, "off": False, "true": True, "false": False}

    # Duration units in seconds
    DURATION_UNITS = {
        "ms": 0.001,
        "s": 1,
        "m": 60,
        "h": 3600,
        "d": 86400,
    }

    ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

    _PATTERN = re.compile(
        r"""
        (?P<space>[ \t\r]+)
        |(?P<newline>\n)
        |(?P<comment>\#[^\n]*)
        |(?P<punct>[{};])
        |(?P<string>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')
        |(?P<number>\d+(?:\.\d+)?)(?P<unit>[a-zA-Z]+)?
        |(?P<word>[A-Za-z_][A-Za-z0-9_\-.]*)
        """,
        re.VERBOSE,
    )

    PUNCTUATION = {"{": TokenType.LBRACE, "}": TokenType.RBRACE, ";": TokenType.SEMICOLON}

    def __init__(self, source: str, filename: str = "<string>"):
        self.source = source
        self.filename = filename

    def _unescape(self, literal: str) -> str:
        """Strip quotes and resolve backslash escapes."""
        body = literal[1:-1]
        return re.sub(r"\\(.)", lambda m: self.ESCAPES.get(m.group(1), m.group(1)), body)

    def _number(self, text: str, unit: str | None, line: int, column: int) -> Token:
        value = float(text) if "." in text else int(text)
        if unit is None:
            return Token(TokenType.NUMBER, value, line, column)

        unit = unit.lower()
        if unit not in self.DURATION_UNITS:
            raise LexerError(f"Unknown duration unit: {unit}", line, column)
        return Token(TokenType.DURATION, value * self.DURATION_UNITS[unit], line, column)

    def tokenize(self) -> Iterator[Token]:
        """Generate all tokens from the source."""
        pos = 0
        line = 1
        line_start = 0

        while pos < len(self.source):
            match = self._PATTERN.match(self.source, pos)
            column = pos - line_start + 1

            if match is None:
                char = self.source[pos]
                if char in "\"'":
                    raise LexerError("Unterminated string literal", line, column)
                raise LexerError(f"Unexpected character: {char!r}", line, column)

            kind = match.lastgroup
            text = match.group(kind) if kind != "unit" else match.group("number")
            pos = match.end()

            if kind == "newline":
                line += 1
                line_start = pos
            elif kind == "punct":
                yield Token(self.PUNCTUATION[text], text, line, column)
            elif kind == "string":
                yield Token(TokenType.STRING, self._unescape(text), line, column)
            elif kind in ("number", "unit"):
                yield self._number(match.group("number"), match.group("unit"), line, column)
            elif kind == "word":
                lowered = text.lower()
                if lowered in self.BOOLEAN_KEYWORDS:
                    yield Token(TokenType.BOOLEAN, self.BOOLEAN_KEYWORDS[lowered], line, column)
                else:
                    yield Token(TokenType.IDENTIFIER, text, line, column)

        yield Token(TokenType.EOF, "", line, pos - line_start + 1)

    def __iter__(self) -> Iterator[Token]:
        return self.tokenize()


def tokenize(source: str, filename: str = "<string>") -> list[Token]:
    """Convenience function to tokenize a source string."""
    return list(Lexer(source, filename))
