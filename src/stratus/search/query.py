"""Search query parsing: free text plus an optional tag filter."""

import re
from collections.abc import Mapping
from dataclasses import dataclass

_TAG_PATTERN = re.compile(r"tag:([^=\s]+)(?:=(\S+))?", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedSearchQuery:
    """A query such as "web", "tag:env=prod" or "web tag:owner".

    Attributes:
        text: Name substring to look for (case-insensitive), may be empty
        tag_key: Required tag name, or None
        tag_value: Required tag value, or None for any value
    """

    text: str = ""
    tag_key: str | None = None
    tag_value: str | None = None

    @classmethod
    def parse(cls, search_text: str | None) -> "ParsedSearchQuery":
        """Split search text into the name part and the first tag filter.

        Args:
            search_text: Raw text typed by the user

        Returns:
            Parsed query (empty for blank input)
        """
        if not search_text or not search_text.strip():
            return cls()

        match = _TAG_PATTERN.search(search_text)
        if match is None:
            return cls(text=search_text.strip())

        return cls(
            text=_TAG_PATTERN.sub("", search_text).strip(),
            tag_key=match.group(1),
            tag_value=match.group(2),
        )

    @property
    def has_tag_filter(self) -> bool:
        return bool(self.tag_key)

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.has_tag_filter

    def matches(self, name: str | None, tags: Mapping[str, str] | None) -> bool:
        """Check a resource against the query.

        Both parts must match when both are given.

        Args:
            name: Resource name
            tags: Resource tags, or None for resources without tags

        Returns:
            True if the resource matches
        """
        if self.is_empty:
            return False

        if self.has_tag_filter and not _has_tag(tags, self.tag_key, self.tag_value):
            return False

        if self.text:
            if not name or self.text.lower() not in name.lower():
                return False

        return True


def _has_tag(tags: Mapping[str, str] | None, key: str, value: str | None) -> bool:
    if not tags:
        return False
    for tag_key, tag_value in tags.items():
        if tag_key.lower() != key.lower():
            continue
        if value is None or (tag_value or "").lower() == value.lower():
            return True
    return False
