"""Placeholder substitution for template prompts."""

import re
from typing import List, Mapping

# A placeholder name never contains braces, so "{{{x}}}" holds "{{x}}" and a stray
# "{{" earlier in the text cannot reach a later placeholder.
_PLACEHOLDER_RE = re.compile(r"\{\{([^{}]+)\}\}")


def _pattern_for(keys: List[str]) -> "re.Pattern[str]":
    # Longest first so "{{ab}}" wins over "{{a}}" when both could start at one offset
    ordered = sorted(keys, key=len, reverse=True)
    return re.compile("|".join(re.escape("{{%s}}" % key) for key in ordered))


def interpolate(body: str, variables: Mapping[str, str]) -> str:
    """Replace every literal ``{{key}}`` whose key is in ``variables``.

    Unknown placeholders are left untouched. Values are inserted verbatim and are
    not scanned again, so a value containing ``{{other}}`` stays literal.
    """
    if not body or not variables:
        return body

    def _substitute(match: "re.Match[str]") -> str:
        return str(variables[match.group(0)[2:-2]])

    return _pattern_for(list(variables)).sub(_substitute, body)


def find_placeholders(body: str) -> List[str]:
    """Return placeholder names in order of first appearance."""
    seen: List[str] = []
    for match in _PLACEHOLDER_RE.finditer(body or ""):
        name = match.group(1)
        if name not in seen:
            seen.append(name)
    return seen


def missing_variables(body: str, variables: Mapping[str, str]) -> List[str]:
    return [name for name in find_placeholders(body) if name not in variables]


__all__ = ["interpolate", "find_placeholders", "missing_variables"]
