#!/usr/bin/env python3
"""
Highlight rules for Chat Highlights
Phrase, user, badge and blacklist rules as configured by the user
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Pattern, Tuple

from .badges import Badge


# Default colors, "#AARRGGBB"
DEFAULT_HIGHLIGHT_COLOR = "#7f7f3f49"
SELF_HIGHLIGHT_COLOR = "#7f7f3f49"
SUBSCRIPTION_COLOR = "#64c466ff"
WHISPER_COLOR = "#7f8977a0"

# Non-regex phrases have to stand alone as a word
REGEX_START_BOUNDARY = r"(\b|\s|^)"
REGEX_END_BOUNDARY = r"(\b|\s|$)"


def _compile(pattern: str, is_regex: bool, case_sensitive: bool) -> Optional[Pattern]:
    """
    Compile a rule pattern, returning None for unusable patterns

    Args:
        pattern: Phrase or regular expression
        is_regex: Use pattern as a regular expression
        case_sensitive: Match case-sensitively

    Returns:
        Compiled pattern, or None if empty or invalid
    """
    if not pattern:
        return None

    if not is_regex:
        pattern = REGEX_START_BOUNDARY + re.escape(pattern) + REGEX_END_BOUNDARY

    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        print(f"Warning: Invalid highlight pattern {pattern!r}: {e}")
        return None


@dataclass(frozen=True)
class HighlightPhrase:
    """A phrase (or user name) that highlights matching messages"""

    pattern: str
    show_in_mentions: bool = True
    has_alert: bool = True
    has_sound: bool = False
    is_regex: bool = False
    case_sensitive: bool = False
    sound_url: str = ""
    color: str = DEFAULT_HIGHLIGHT_COLOR
    _regex: Optional[Pattern] = field(init=False, repr=False, compare=False, default=None)

    def __post_init__(self):
        object.__setattr__(self, "_regex", _compile(self.pattern, self.is_regex, self.case_sensitive))

    @property
    def is_valid(self) -> bool:
        return self._regex is not None

    @property
    def has_custom_sound(self) -> bool:
        return bool(self.sound_url)

    def is_match(self, subject: str) -> bool:
        """Check whether subject contains this phrase"""
        return self._regex is not None and self._regex.search(subject or "") is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HighlightPhrase":
        """
        Build a phrase from its config representation

        Args:
            data: Dict with keys pattern, show_in_mentions, alert, sound,
                  regex, case_sensitive, sound_url, color

        Returns:
            HighlightPhrase instance
        """
        return cls(
            pattern=str(data.get("pattern", "")),
            show_in_mentions=bool(data.get("show_in_mentions", True)),
            has_alert=bool(data.get("alert", True)),
            has_sound=bool(data.get("sound", False)),
            is_regex=bool(data.get("regex", False)),
            case_sensitive=bool(data.get("case_sensitive", False)),
            sound_url=str(data.get("sound_url") or ""),
            color=str(data.get("color") or DEFAULT_HIGHLIGHT_COLOR),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern,
            "show_in_mentions": self.show_in_mentions,
            "alert": self.has_alert,
            "sound": self.has_sound,
            "regex": self.is_regex,
            "case_sensitive": self.case_sensitive,
            "sound_url": self.sound_url,
            "color": self.color,
        }


@dataclass(frozen=True)
class HighlightBadge:
    """Highlights messages from users wearing a badge"""

    badge_name: str
    badge_version: Optional[str] = None  # None matches every version
    display_name: str = ""
    has_alert: bool = False
    has_sound: bool = False
    sound_url: str = ""
    color: str = DEFAULT_HIGHLIGHT_COLOR

    @property
    def has_custom_sound(self) -> bool:
        return bool(self.sound_url)

    def is_match(self, badge: Badge) -> bool:
        if badge.name != self.badge_name:
            return False
        return self.badge_version is None or badge.version == self.badge_version

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HighlightBadge":
        """
        Build a badge rule from its config representation

        The name may carry the version ("bits/1000"); an explicit
        "version" key wins over that.
        """
        name = str(data.get("name", ""))
        version = data.get("version")
        if "/" in name:
            name, _, name_version = name.partition("/")
            if version is None:
                version = name_version

        return cls(
            badge_name=name,
            badge_version=str(version) if version not in (None, "") else None,
            display_name=str(data.get("display_name") or ""),
            has_alert=bool(data.get("alert", False)),
            has_sound=bool(data.get("sound", False)),
            sound_url=str(data.get("sound_url") or ""),
            color=str(data.get("color") or DEFAULT_HIGHLIGHT_COLOR),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.badge_name,
            "version": self.badge_version,
            "display_name": self.display_name,
            "alert": self.has_alert,
            "sound": self.has_sound,
            "sound_url": self.sound_url,
            "color": self.color,
        }


@dataclass(frozen=True)
class HighlightBlacklistUser:
    """A user whose messages never trigger highlights"""

    pattern: str
    is_regex: bool = False
    _regex: Optional[Pattern] = field(init=False, repr=False, compare=False, default=None)

    def __post_init__(self):
        if self.is_regex:
            # Full-name comparison for plain entries, search for regex ones
            object.__setattr__(self, "_regex", _compile(self.pattern, True, False))

    def is_match(self, name: str) -> bool:
        if self.is_regex:
            return self._regex is not None and self._regex.search(name or "") is not None
        return bool(self.pattern) and self.pattern.lower() == (name or "").lower()

    @classmethod
    def from_dict(cls, data: Any) -> "HighlightBlacklistUser":
        # Plain strings are accepted as shorthand for non-regex entries
        if isinstance(data, str):
            return cls(pattern=data)
        return cls(pattern=str(data.get("pattern", "")), is_regex=bool(data.get("regex", False)))

    def to_dict(self) -> Dict[str, Any]:
        return {"pattern": self.pattern, "regex": self.is_regex}


@dataclass(frozen=True)
class IgnorePhrase:
    """A phrase whose messages are dropped before highlighting"""

    pattern: str
    is_regex: bool = False
    case_sensitive: bool = False
    _regex: Optional[Pattern] = field(init=False, repr=False, compare=False, default=None)

    def __post_init__(self):
        object.__setattr__(self, "_regex", _compile(self.pattern, self.is_regex, self.case_sensitive))

    def is_match(self, text: str) -> bool:
        return self._regex is not None and self._regex.search(text or "") is not None

    @classmethod
    def from_dict(cls, data: Any) -> "IgnorePhrase":
        if isinstance(data, str):
            return cls(pattern=data)
        return cls(
            pattern=str(data.get("pattern", "")),
            is_regex=bool(data.get("regex", False)),
            case_sensitive=bool(data.get("case_sensitive", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"pattern": self.pattern, "regex": self.is_regex, "case_sensitive": self.case_sensitive}


@dataclass(frozen=True)
class HighlightRuleSet:
    """All configured highlight rules, in evaluation order"""

    users: Tuple[HighlightPhrase, ...] = ()
    phrases: Tuple[HighlightPhrase, ...] = ()
    badges: Tuple[HighlightBadge, ...] = ()
    blacklist: Tuple[HighlightBlacklistUser, ...] = ()
    ignores: Tuple[IgnorePhrase, ...] = ()

    def is_blacklisted(self, name: str) -> bool:
        return any(entry.is_match(name) for entry in self.blacklist)

    def is_ignored(self, text: str) -> bool:
        return any(phrase.is_match(text) for phrase in self.ignores)

    @classmethod
    def from_config(cls, highlights: Dict[str, Any]) -> "HighlightRuleSet":
        """
        Build the rule set from the "highlights" config section

        Args:
            highlights: Dict with "users", "phrases", "badges", "blacklist"
                        and "ignores" lists

        Returns:
            HighlightRuleSet instance
        """
        return cls(
            users=_build(HighlightPhrase, highlights.get("users")),
            phrases=_build(HighlightPhrase, highlights.get("phrases")),
            badges=_build(HighlightBadge, highlights.get("badges")),
            blacklist=_build(HighlightBlacklistUser, highlights.get("blacklist")),
            ignores=_build(IgnorePhrase, highlights.get("ignores")),
        )


def _build(rule_type, entries: Optional[Iterable[Any]]) -> tuple:
    rules = []
    for entry in entries or []:
        try:
            rules.append(rule_type.from_dict(entry))
        except (AttributeError, TypeError, ValueError) as e:
            print(f"Warning: Skipping invalid {rule_type.__name__} entry {entry!r}: {e}")
    return tuple(rules)
