"""Name conversions used to derive resource paths, param keys and labels."""

from __future__ import annotations

import re

_IES = re.compile(r"[^aeiou]y$")
_ES = re.compile(r"(s|x|z|ch|sh)$")


def camel_to_snake(name: str) -> str:
    """Convert CamelCase to snake_case. BlogPost -> blog_post"""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name).lower()


def pluralize(word: str) -> str:
    """Pluralize an English noun using the regular suffix rules.

    category -> categories, box -> boxes, post -> posts
    """
    if not word:
        return word
    if _IES.search(word):
        return word[:-1] + "ies"
    if _ES.search(word):
        return word + "es"
    return word + "s"


def humanize(name: str) -> str:
    """first_name -> First name"""
    text = name.replace("_", " ").strip()
    return text[:1].upper() + text[1:]
