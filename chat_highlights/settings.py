#!/usr/bin/env python3
"""
Highlight settings snapshot for Chat Highlights

The resolver and the dispatcher never read the live configuration.
ConfigManager.get_highlight_settings() freezes it into a HighlightSettings
so a configuration change only affects messages resolved afterwards.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

from .highlight_rules import (
    HighlightRuleSet,
    SELF_HIGHLIGHT_COLOR,
    SUBSCRIPTION_COLOR,
    WHISPER_COLOR,
)
from .models import CurrentUser


STREAMER_MODE_DISABLED = "disabled"
STREAMER_MODE_ENABLED = "enabled"
STREAMER_MODE_DETECT_OBS = "detect_obs"


def normalize_channel(channel: str) -> str:
    """Lower-case a channel name and strip its leading '#'"""
    return (channel or "").strip().lstrip("#").lower()


def normalize_channels(channels: Iterable[str]) -> FrozenSet[str]:
    return frozenset(name for name in (normalize_channel(c) for c in channels or []) if name)


@dataclass(frozen=True)
class HighlightSettings:
    """Immutable view of every option the highlight engine consults"""

    # Subscription events
    enable_sub_highlight: bool = True
    enable_sub_highlight_taskbar: bool = True
    enable_sub_highlight_sound: bool = True
    sub_highlight_sound_url: str = ""
    sub_highlight_color: str = SUBSCRIPTION_COLOR

    # Received whispers
    enable_whisper_highlight: bool = True
    enable_whisper_highlight_taskbar: bool = True
    enable_whisper_highlight_sound: bool = False
    whisper_highlight_sound_url: str = ""
    whisper_highlight_color: str = WHISPER_COLOR

    # Mentions of the current user's name
    enable_self_highlight: bool = True
    enable_self_highlight_taskbar: bool = True
    enable_self_highlight_sound: bool = True
    show_self_highlight_in_mentions: bool = True
    self_highlight_sound_url: str = ""
    self_highlight_color: str = SELF_HIGHLIGHT_COLOR

    # Fallback sound
    custom_highlight_sound: bool = False
    highlight_sound_path: str = ""

    # Delivery
    highlight_always_play_sound: bool = False
    streamer_mode: str = STREAMER_MODE_DISABLED
    streamer_mode_mute_mentions: bool = True
    muted_channels: FrozenSet[str] = frozenset()

    rules: HighlightRuleSet = field(default_factory=HighlightRuleSet)
    current_user: CurrentUser = field(default_factory=CurrentUser)

    def is_muted_channel(self, channel: str) -> bool:
        return normalize_channel(channel) in self.muted_channels

    def is_blacklisted_user(self, name: str) -> bool:
        return self.rules.is_blacklisted(name)

    def is_ignored_message(self, text: str) -> bool:
        return self.rules.is_ignored(text)

