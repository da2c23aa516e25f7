from .array import readonly
from .io import read_text, with_suffix, write_text
from .logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "read_text",
    "readonly",
    "with_suffix",
    "write_text",
]
