"""Element symbol normalization.

SIMNRA reports element names as two-character strings, padding one-letter
symbols with a trailing space ("W " rather than "W"). Everything that stores
or looks up element names goes through :func:`normalize_element_name`.
"""

from __future__ import annotations

from .errors import InvalidInputError

SYMBOL_WIDTH = 2


def normalize_element_name(name: str) -> str:
    """Return the canonical 2-character form of an element symbol."""
    if not isinstance(name, str):
        raise InvalidInputError(f"element name must be a string, got {name!r}.")
    symbol = name.rstrip()
    if not symbol or len(symbol) > SYMBOL_WIDTH or not symbol.isalpha():
        raise InvalidInputError(f"element name must be 1 or 2 letters, got {name!r}.")
    return symbol.ljust(SYMBOL_WIDTH)


def display_element_name(name: str) -> str:
    """Strip SIMNRA padding for headers and log output."""
    return normalize_element_name(name).rstrip()
