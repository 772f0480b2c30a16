"""
Utility functions and helpers.
"""

from .command import check_executable, run_command
from .parsing import get_number, get_string, load_json

__all__ = [
    "check_executable",
    "run_command",
    "load_json",
    "get_number",
    "get_string",
]
