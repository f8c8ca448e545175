#!/usr/bin/env python3
"""
Badge parsing for Chat Highlights
Extracts (name, version) pairs from the IRCv3 "badges" tag
"""

from dataclasses import dataclass
from typing import Any, List, Mapping


@dataclass(frozen=True)
class Badge:
    """A chat badge such as subscriber/12 or moderator/1"""

    name: str
    version: str

    @property
    def key(self) -> str:
        return f"{self.name}/{self.version}"


def parse_tag_list(tags: Mapping[str, Any], key: str) -> List[str]:
    """
    Split a comma separated tag value, skipping empty entries

    Args:
        tags: IRCv3 tag mapping
        key: Tag name

    Returns:
        List of non-empty entries (empty if the tag is missing or has no value)
    """
    value = tags.get(key) if tags else None
    # miniirc hands value-less tags over as True
    if not isinstance(value, str):
        return []

    return [item for item in value.split(",") if item]


def parse_badges(tags: Mapping[str, Any], key: str = "badges") -> List[Badge]:
    """
    Parse the badges of a message

    Malformed entries (anything that is not exactly "name/version")
    are dropped.

    Args:
        tags: IRCv3 tag mapping
        key: Tag holding the badge list ("badges" or "source-badges")

    Returns:
        Badges in the order they appear in the tag
    """
    badges = []

    for token in parse_tag_list(tags, key):
        parts = token.split("/")
        if len(parts) != 2:
            continue

        badges.append(Badge(parts[0], parts[1]))

    return badges
