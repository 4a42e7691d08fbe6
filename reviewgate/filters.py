"""
Reduce a change set to the files worth sending for analysis.

Exclusion always wins: a path matching any exclude pattern is dropped
even when its extension is on the include list.
"""

import logging
from typing import List, Sequence

from reviewgate.models import ChangeRecord, FilterRuleSet
from reviewgate.patterns import matches

logger = logging.getLogger(__name__)


def is_excluded(path: str, rules: FilterRuleSet) -> bool:
    """True when any exclude pattern matches the path."""
    for pattern in rules.exclude_patterns:
        if matches(path, pattern):
            logger.debug(f"Excluding {path} (pattern {pattern})")
            return True
    return False


def has_included_extension(path: str, rules: FilterRuleSet) -> bool:
    """Case-insensitive check against the configured include extensions."""
    lowered = path.lower()
    return any(lowered.endswith(ext.lower()) for ext in rules.include_extensions)


def is_reviewable(path: str, rules: FilterRuleSet) -> bool:
    return not is_excluded(path, rules) and has_included_extension(path, rules)


def filter_changes(changes: Sequence[ChangeRecord], rules: FilterRuleSet) -> List[ChangeRecord]:
    """Keep reviewable records, preserving input order."""
    return [change for change in changes if is_reviewable(change.path, rules)]
