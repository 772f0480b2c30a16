"""
Recursive descent parser for nginx-like configuration syntax.

Parses tokens from the lexer into blocks and directives.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .lexer import Lexer, Token, TokenType


class ParseError(Exception):
    """Exception raised for parser errors."""

    def __init__(self, message: str, token: Token | None = None):
        self.token = token
        if token:
            super().__init__(f"Line {token.line}, column {token.column}: {message}")
        else:
            super().__init__(message)


@dataclass
class Directive:
    """
    A configuration directive with a name and values.

    Examples:
        listen_address ":9365";   -> Directive(name="listen_address", values=[":9365"])
        command_timeout 10s;      -> Directive(name="command_timeout", values=[10])
        sensor on;                -> Directive(name="sensor", values=[True])
    """
    name: str
    values: list[Any] = field(default_factory=list)
    line: int = 0

    @property
    def value(self) -> Any:
        """Get single value (first) or None."""
        return self.values[0] if self.values else None


@dataclass
class Block:
    """
    A configuration block with a type and contents.

    Example:
        web { ... }   -> Block(type="web", ...)
    """
    type: str
    directives: list[Directive] = field(default_factory=list)
    blocks: list["Block"] = field(default_factory=list)
    line: int = 0

    def __repr__(self) -> str:
        return f"Block({self.type}, directives={len(self.directives)}, blocks={len(self.blocks)})"

    def get_directive(self, name: str) -> Directive | None:
        """Get last directive with given name (later ones override)."""
        found = None
        for d in self.directives:
            if d.name == name:
                found = d
        return found

    def get_value(self, name: str, default: Any = None) -> Any:
        """Get single value from directive."""
        directive = self.get_directive(name)
        if directive and directive.values:
            return directive.value
        return default


@dataclass
class ConfigDocument:
    """Root document containing all top-level blocks and directives."""
    blocks: list[Block] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)
    filename: str = "<string>"

    def get_block(self, type_name: str) -> Block | None:
        """Get a block by type, merging repeated blocks of the same type."""
        matches = [b for b in self.blocks if b.type == type_name]
        if not matches:
            return None
        if len(matches) == 1:
            return matches[0]

        merged = Block(type=type_name, line=matches[0].line)
        for block in matches:
            merged.directives.extend(block.directives)
            merged.blocks.extend(block.blocks)
        return merged


class ConfigParser:
    """
    Recursive descent parser for nginx-like configuration.

    Grammar:
        document    := (block | directive)*
        block       := IDENTIFIER '{' (block | directive)* '}'
        directive   := IDENTIFIER value* ';'
        value       := STRING | NUMBER | DURATION | BOOLEAN | IDENTIFIER
    """

    VALUE_TYPES = (
        TokenType.STRING,
        TokenType.NUMBER,
        TokenType.DURATION,
        TokenType.BOOLEAN,
        TokenType.IDENTIFIER,
    )

    def __init__(self, source: str, filename: str = "<string>"):
        self.filename = filename
        self.tokens = list(Lexer(source, filename))
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if self.current.type != token_type:
            raise ParseError(message, self.current)
        return self._advance()

    def parse(self) -> ConfigDocument:
        """Parse the entire configuration document."""
        doc = ConfigDocument(filename=self.filename)

        while self.current.type != TokenType.EOF:
            item = self._parse_item()
            if isinstance(item, Block):
                doc.blocks.append(item)
            else:
                doc.directives.append(item)

        return doc

    def _parse_item(self) -> Block | Directive:
        """Parse either a block or a directive."""
        name_token = self._expect(
            TokenType.IDENTIFIER,
            f"Expected block or directive name, got {self.current.type.name}",
        )
        name = str(name_token.value)

        values: list[Any] = []
        while self.current.type in self.VALUE_TYPES:
            values.append(self._advance().value)

        if self.current.type == TokenType.LBRACE:
            if values:
                raise ParseError(f"Block '{name}' takes no arguments", name_token)
            return self._parse_block_body(name, name_token.line)

        self._expect(TokenType.SEMICOLON, f"Expected '{{' or ';' after directive '{name}'")
        return Directive(name=name, values=values, line=name_token.line)

    def _parse_block_body(self, type_name: str, line: int) -> Block:
        """Parse the body of a block, starting at its opening brace."""
        self._advance()
        block = Block(type=type_name, line=line)

        while self.current.type not in (TokenType.RBRACE, TokenType.EOF):
            item = self._parse_item()
            if isinstance(item, Block):
                block.blocks.append(item)
            else:
                block.directives.append(item)

        self._expect(TokenType.RBRACE, f"Expected '}}' to close '{type_name}' block")
        return block


def parse_config(source: str, filename: str = "<string>") -> ConfigDocument:
    """
    Parse a configuration string.

    Args:
        source: Configuration source code
        filename: Filename for error messages

    Returns:
        Parsed ConfigDocument
    """
    return ConfigParser(source, filename).parse()


def parse_config_file(path: str | Path) -> ConfigDocument:
    """Parse a configuration file."""
    path = Path(path)
    return parse_config(path.read_text(), str(path))
