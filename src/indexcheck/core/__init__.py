"""Core checking modules for indexcheck."""

__all__ = [
    "checker",
    "context",
    "einsum",
    "exceptions",
    "ir",
    "labels",
    "options",
    "parser",
    "reporter",
    "runtime",
    "stores",
]
