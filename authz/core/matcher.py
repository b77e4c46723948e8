"""
Ant-style path matching for endpoint rules.

Supported pattern syntax:
- ``?`` matches one character within a path segment
- ``*`` matches zero or more characters within a path segment
- ``**`` as a whole segment matches zero or more path segments
- ``{name}`` matches one non-empty path segment (the value is not captured)

Patterns are compiled to anchored regular expressions. Everything that is
not one of the tokens above is escaped, so a pattern can never smuggle
regex syntax into the matcher.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Pattern, Tuple

from authz.core.exceptions import ValidationError

SEPARATOR = "/"

_TOKEN_RE = re.compile(r"\*\*|\*|\?|\{[^/{}]+\}")


@dataclass(frozen=True)
class CompiledPattern:
    """A compiled Ant-style pattern."""
    pattern: str
    regex: Pattern
    variable_names: Tuple[str, ...]
    absolute: bool

    def matches(self, path: str) -> bool:
        if path.startswith(SEPARATOR) != self.absolute:
            return False
        candidate = path if self.absolute else SEPARATOR + path
        return self.regex.fullmatch(candidate) is not None


def _segment_to_regex(segment: str, variable_names: List[str]) -> str:
    """Translate a single path segment, escaping all literal text."""
    parts = []
    position = 0

    for token_match in _TOKEN_RE.finditer(segment):
        parts.append(re.escape(segment[position:token_match.start()]))
        token = token_match.group(0)

        if token in ("*", "**"):
            parts.append("[^/]*")
        elif token == "?":
            parts.append("[^/]")
        else:
            variable_names.append(token[1:-1].split(":", 1)[0].strip())
            parts.append("[^/]+")

        position = token_match.end()

    parts.append(re.escape(segment[position:]))
    return "".join(parts)


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> CompiledPattern:
    """Compile (and cache) an Ant-style pattern."""
    absolute = pattern.startswith(SEPARATOR)
    segments = [segment for segment in pattern.split(SEPARATOR) if segment]
    variable_names: List[str] = []

    pieces = []
    for segment in segments:
        if segment == "**":
            pieces.append("(?:/[^/]*)*")
        else:
            pieces.append(SEPARATOR + _segment_to_regex(segment, variable_names))

    if not segments:
        pieces = [SEPARATOR]
    elif pattern.endswith(SEPARATOR):
        pieces.append(SEPARATOR)

    return CompiledPattern(
        pattern=pattern,
        regex=re.compile("".join(pieces)),
        variable_names=tuple(variable_names),
        absolute=absolute,
    )


def match(pattern: str, path: str) -> bool:
    """Return True if ``path`` matches the Ant-style ``pattern`` (case-sensitive)."""
    return compile_pattern(pattern).matches(path)


def method_matches(rule_method: str, request_method: str) -> bool:
    """HTTP methods compare case-insensitively."""
    return rule_method.strip().upper() == request_method.strip().upper()


def validate_pattern(pattern: str) -> str:
    """
    Check that a pattern is well formed before it is stored.

    Raises:
        ValidationError: If the pattern is empty, not absolute, or has
            unbalanced or empty ``{}`` variables.
    """
    if not pattern or not pattern.strip():
        raise ValidationError("URL pattern must not be empty")

    if not pattern.startswith(SEPARATOR):
        raise ValidationError(f"URL pattern must start with '/': {pattern}")

    depth = 0
    for char in pattern:
        if char == "{":
            depth += 1
            if depth > 1:
                raise ValidationError(f"Nested '{{' in URL pattern: {pattern}")
        elif char == "}":
            depth -= 1
            if depth < 0:
                raise ValidationError(f"Unbalanced '}}' in URL pattern: {pattern}")
    if depth != 0:
        raise ValidationError(f"Unbalanced '{{' in URL pattern: {pattern}")

    if "{}" in pattern:
        raise ValidationError(f"Empty variable in URL pattern: {pattern}")

    return pattern
