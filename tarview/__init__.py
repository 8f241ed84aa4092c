"""Read-only, random-access file system view over tar archives, plus reader utilities."""

__version__ = "0.1.0"
__all__ = [
    "cancellable",
    "entries",
    "fs",
    "headers",
    "multi_read",
    "reader",
    "readers",
    "serr",
    "tarformat",
]