"""
Suffix rules for storage keys.

Every uploaded file is stored under
``{credentials.unique_file_prefix}{rule.get_suffix(resource, index)}.{extension}``.
Rules are stateless and may be shared between batches.
"""
from abc import ABC, abstractmethod
from typing import Callable, Sequence

from ..protocols import ResourceHandle, SuffixRule


class BaseSuffixRule(ABC):
    """Abstract base class for suffix rules."""

    @abstractmethod
    def get_suffix(self, resource: ResourceHandle, index: int) -> str:
        """Return the key suffix for a resource."""
        pass


class IncrementalSuffixRule(BaseSuffixRule):
    """Uses the resource's index in the batch: 0, 1, 2, ..."""

    def get_suffix(self, resource: ResourceHandle, index: int) -> str:
        return str(index)


class IndexedSuffixRule(BaseSuffixRule):
    """
    Maps indices onto a fixed table of suffixes.

    Indices past the end of the table wrap around to the beginning, so a
    suffix is always returned.

    Example:
        >>> rule = IndexedSuffixRule(["original", "thumb"])
        >>> [rule.get_suffix(None, i) for i in range(3)]
        ['original', 'thumb', 'original']
    """

    def __init__(self, suffixes: Sequence[str]):
        """
        Args:
            suffixes: Non-empty table of suffixes

        Raises:
            ValueError: If the table is empty
        """
        if not suffixes:
            raise ValueError("IndexedSuffixRule requires at least one suffix")
        self._suffixes = tuple(suffixes)

    @property
    def suffixes(self) -> tuple:
        return self._suffixes

    def get_suffix(self, resource: ResourceHandle, index: int) -> str:
        return self._suffixes[index % len(self._suffixes)]


class CallableSuffixRule(BaseSuffixRule):
    """Wraps a plain ``fn(resource, index) -> str`` as a rule."""

    def __init__(self, fn: Callable[[ResourceHandle, int], str]):
        self._fn = fn

    def get_suffix(self, resource: ResourceHandle, index: int) -> str:
        return str(self._fn(resource, index))


SUFFIX_INCREMENTAL: SuffixRule = IncrementalSuffixRule()

# Common dimension descriptors, in the order resized copies are usually sent
SUFFIX_DIMENSIONS: SuffixRule = IndexedSuffixRule(["original", "large", "medium", "small"])

_NAMED_RULES = {
    'incremental': SUFFIX_INCREMENTAL,
    'dimensions': SUFFIX_DIMENSIONS,
}


def suffix_rule_from_name(name: str) -> SuffixRule:
    """
    Look up a builtin rule by name.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return _NAMED_RULES[name.lower()]
    except KeyError:
        known = ', '.join(sorted(_NAMED_RULES))
        raise ValueError(f"Unknown suffix rule '{name}' (expected one of: {known})") from None
