"""Upload strategies module."""
from .naming import (
    BaseSuffixRule,
    IncrementalSuffixRule,
    IndexedSuffixRule,
    CallableSuffixRule,
    SUFFIX_INCREMENTAL,
    SUFFIX_DIMENSIONS,
    suffix_rule_from_name,
)

__all__ = [
    'BaseSuffixRule',
    'IncrementalSuffixRule',
    'IndexedSuffixRule',
    'CallableSuffixRule',
    'SUFFIX_INCREMENTAL',
    'SUFFIX_DIMENSIONS',
    'suffix_rule_from_name',
]
