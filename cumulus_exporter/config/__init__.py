"""
Configuration parsing module with nginx-like syntax support.
"""

from .lexer import Lexer, LexerError, Token, TokenType
from .loader import ConfigError, ConfigLoader, load_config
from .parser import ConfigParser, ParseError
from .schema import Config, CumulusConfig, LoggingConfig, WebConfig

__all__ = [
    "Lexer",
    "LexerError",
    "Token",
    "TokenType",
    "ConfigParser",
    "ParseError",
    "Config",
    "CumulusConfig",
    "LoggingConfig",
    "WebConfig",
    "ConfigError",
    "ConfigLoader",
    "load_config",
]
