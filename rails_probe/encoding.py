"""
Line encoding shared by queries and the runner.

Every answered probe writes exactly one line to stdout:

    <tag>=<value>

Tags are namespaced dotted identifiers, so they never contain "=",
whitespace or newlines. Line order carries no meaning.
"""

import re
from typing import Iterator, List, Optional, Tuple

from .errors import InvalidKeyError

# Default tag namespace, kept from the buildpack detection output format
DEFAULT_NAMESPACE = "heroku.detecting.config.for"

# One segment per Ruby method name: `assets`, `compile`, `enabled?`
_SEGMENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\??$")

SEPARATOR = "="


def validate_key(key: str) -> str:
    """
    Validate a dotted probe key and return it unchanged.

    Raises:
        InvalidKeyError: If the key is empty or has an unrenderable segment
    """
    if not isinstance(key, str):
        raise InvalidKeyError(repr(key), "key must be a string")
    if not key:
        raise InvalidKeyError(key, "key cannot be empty")

    for segment in key.split("."):
        if not segment:
            raise InvalidKeyError(key, "key contains an empty segment")
        if not _SEGMENT_PATTERN.match(segment):
            raise InvalidKeyError(
                key, f"segment '{segment}' is not a valid method name"
            )
    return key


def build_tag(key: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Derive the output tag for a key, e.g. `<namespace>.active_storage.service`."""
    validate_key(key)
    validate_key(namespace)
    return f"{namespace}.{key}"


def encode_line(tag: str, value: str) -> str:
    """Render one result line. Newlines in the value are flattened to spaces."""
    flat = value.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    return f"{tag}{SEPARATOR}{flat}"


def split_lines(output: str) -> List[str]:
    r"""
    Split output on "\n" only, dropping one trailing "\r" per line.

    Other separators str.splitlines() honours (form feed, U+2028, ...)
    are part of the value.
    """
    lines = output.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def iter_lines(output: str) -> Iterator[Tuple[str, str]]:
    """Yield (tag, value) for every line that looks like a result line."""
    for line in split_lines(output):
        tag, sep, value = line.partition(SEPARATOR)
        if sep:
            yield tag, value


def find_value(output: str, tag: str) -> Optional[str]:
    """
    Return the value recorded for a tag, or None when the tag is absent.

    The first occurrence wins if a tag was printed more than once.
    """
    for line_tag, value in iter_lines(output):
        if line_tag == tag:
            return value
    return None


def has_line(output: str, tag: str, value: str) -> bool:
    """Exact, case-sensitive check for the line `tag=value`."""
    expected = f"{tag}{SEPARATOR}{value}"
    return any(line == expected for line in split_lines(output))
