"""
Naming and selector helpers shared across autobdd.
"""

from __future__ import annotations

import re

_NON_WORD = re.compile(r"[^0-9a-zA-Z]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SIMPLE_CSS_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
QUOTED_LITERAL = re.compile(r"""(?<!\w)(["'])(.*?)\1(?!\w)""")


def to_identifier(text: str, fallback: str = "element") -> str:
    """
    Convert free text into a snake_case Python identifier.

    ``"User Name"`` -> ``"user_name"``, ``"loginButton"`` -> ``"login_button"``.
    """
    text = _CAMEL_BOUNDARY.sub("_", text.strip())
    ident = _NON_WORD.sub("_", text).strip("_").lower()
    if not ident:
        return fallback
    if ident[0].isdigit():
        ident = f"{fallback}_{ident}"
    return ident


def to_class_name(name: str, suffix: str = "") -> str:
    """``"login"`` -> ``"LoginPage"`` when ``suffix="Page"``."""
    parts = [p for p in to_identifier(name).split("_") if p]
    return "".join(p.capitalize() for p in parts) + suffix


def strip_quoted(text: str) -> str:
    """Remove quoted literal values from step text."""
    return QUOTED_LITERAL.sub(" ", text)


def quoted_values(text: str) -> list[str]:
    """Return the quoted literal values of a step, in order."""
    return [m.group(2) for m in QUOTED_LITERAL.finditer(text)]


def css_attr_value(value: str) -> str:
    """Escape a value for use inside a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def css_id_selector(element_id: str) -> str:
    """``#id`` when the id is a plain CSS identifier, else an attribute selector."""
    if _SIMPLE_CSS_IDENT.match(element_id):
        return f"#{element_id}"
    return f'[id="{css_attr_value(element_id)}"]'


def dedupe(items: list[str]) -> list[str]:
    """Drop repeated and empty items, keeping first-seen order."""
    seen: set[str] = set()
    unique: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            unique.append(item)
    return unique
