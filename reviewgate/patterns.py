"""
Glob-style path matching for include/exclude rules.

Matching is deliberately small and bounded:
- no wildcard        -> exact string equality
- `*` / `?` only     -> anchored regex, `*` never crosses a `/`
- `**`               -> table of well-known patterns first, then a
                        two-part prefix/suffix split

The generic `**` split treats "prefix/**/suffix" as "path contains
prefix/suffix". When the prefix ends and the suffix starts with `/`, the
doubled separator is collapsed to one, so `src/**/test.py` matches any path
containing `src/test.py` (and not `src/a/test.py`). This is not full glob
semantics and existing exclude lists rely on it, so keep it that way.

A pattern that gets ignored is reported once, not on every match.

`matches` never raises. Any failure, or a pattern judged too expensive,
is a non-match. For exclude rules a non-match means "not excluded", so an
exclude list is only a safety net on top of the include-extension check.
"""

import logging
import re
from functools import lru_cache
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

MAX_PATTERN_LENGTH = 256
MAX_GLOBSTAR_COUNT = 2
GLOBSTAR = "**"
WILDCARD_CHARS = ("*", "?")


def _has_segment(name: str) -> Callable[[str], bool]:
    return lambda path: name in path.split("/")


def _ends_with(suffix: str) -> Callable[[str], bool]:
    return lambda path: path.endswith(suffix)


def _contains(text: str) -> Callable[[str], bool]:
    return lambda path: text in path


# Common build-artifact and security-sensitive exclusions, evaluated
# without compiling a regex.
KNOWN_PATTERNS: Dict[str, Callable[[str], bool]] = {
    "**/node_modules/**": _has_segment("node_modules"),
    "**/dist/**": _has_segment("dist"),
    "**/build/**": _has_segment("build"),
    "**/.git/**": _has_segment(".git"),
    "**/__pycache__/**": _has_segment("__pycache__"),
    "**/vendor/**": _has_segment("vendor"),
    "**/coverage/**": _has_segment("coverage"),
    "**/*.env": _ends_with(".env"),
    "**/.env": _ends_with(".env"),
    "**/*.key": _ends_with(".key"),
    "**/*.pem": _ends_with(".pem"),
    "**/*.min.js": _ends_with(".min.js"),
    "**/*.lock": _ends_with(".lock"),
    "**/*credentials*": _contains("credentials"),
    "**/*secrets*": _contains("secrets"),
}


@lru_cache(maxsize=512)
def _glob_to_regex(fragment: str) -> str:
    """Escape a fragment, mapping `*` and `?` to non-separator wildcards."""
    parts = []
    for char in fragment:
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


@lru_cache(maxsize=512)
def _compile(regex: str) -> "re.Pattern[str]":
    return re.compile(regex)


@lru_cache(maxsize=512)
def _is_unsafe(pattern: str) -> bool:
    if len(pattern) > MAX_PATTERN_LENGTH:
        logger.warning(f"Pattern longer than {MAX_PATTERN_LENGTH} characters ignored: {pattern[:40]}...")
        return True
    if pattern.count(GLOBSTAR) > MAX_GLOBSTAR_COUNT:
        logger.warning(f"Pattern with more than {MAX_GLOBSTAR_COUNT} '**' segments ignored: {pattern}")
        return True
    return False


@lru_cache(maxsize=512)
def _split_globstar(pattern: str) -> Optional[Tuple[str, str]]:
    parts = pattern.split(GLOBSTAR)
    if len(parts) != 2:
        logger.warning(f"Unsupported '**' pattern ignored: {pattern}")
        return None
    return parts[0], parts[1]


def _match_single_star(path: str, pattern: str) -> bool:
    return _compile("^" + _glob_to_regex(pattern) + "$").match(path) is not None


def _match_globstar(path: str, pattern: str) -> bool:
    known = KNOWN_PATTERNS.get(pattern)
    if known is not None:
        return known(path)

    parts = _split_globstar(pattern)
    if parts is None:
        return False

    prefix, suffix = parts
    if not prefix and not suffix:
        return True

    if not prefix:
        # A leading "**/" may also stand for zero directories
        subject = "/" + path if suffix.startswith("/") else path
        return _compile(_glob_to_regex(suffix) + "$").search(subject) is not None

    if not suffix:
        return _compile("^" + _glob_to_regex(prefix)).match(path) is not None

    if prefix.endswith("/") and suffix.startswith("/"):
        suffix = suffix[1:]
    return _compile(_glob_to_regex(prefix + suffix)).search(path) is not None


def matches(path: str, pattern: str) -> bool:
    """Return True when `path` matches `pattern`; False on any failure."""
    try:
        if not pattern or _is_unsafe(pattern):
            return False

        if not any(char in pattern for char in WILDCARD_CHARS):
            return path == pattern

        if GLOBSTAR not in pattern:
            return _match_single_star(path, pattern)

        return _match_globstar(path, pattern)

    except Exception as e:
        logger.warning(f"Pattern match failed for {pattern!r} against {path!r}: {e}")
        return False
