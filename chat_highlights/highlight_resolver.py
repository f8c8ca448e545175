#!/usr/bin/env python3
"""
Highlight Resolver for Chat Highlights

Decides whether an incoming message is highlighted, which color it gets and
whether it should raise an alert and/or play a sound.

Rule categories are evaluated in a fixed order. Each category may only add to
the result, and may end resolution early:

    subscription  sub events; its color is protected from later categories
    blacklist     blacklisted senders stop here
    whisper       received whispers; color may be overridden below
    users         per-user rules; stops once alert and sound are both set
    self          your own messages stop here
    phrases       phrase rules plus the synthesized self-mention rule
    badges        badge rules

Sound URLs are first-writer-wins: once any category requested a sound,
later categories keep requesting it but never change the URL.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .badges import parse_badges
from .highlight_rules import HighlightPhrase
from .models import ChatMessage
from .settings import HighlightSettings
from .sound_manager import get_fallback_highlight_sound, to_sound_url


@dataclass
class HighlightResult:
    """Accumulated highlight state for one message"""

    highlighted: bool = False
    color: Optional[str] = None
    show_in_mentions: bool = False
    alert: bool = False
    sound: bool = False
    sound_url: Optional[str] = None
    stopped_by: Optional[str] = None  # Category that ended resolution, if any

    @property
    def done(self) -> bool:
        """No further rule can add an alert or a sound"""
        return self.alert and self.sound

    def request_alert(self) -> None:
        self.alert = True

    def request_sound(self, url: str) -> None:
        if self.sound:
            return
        self.sound = True
        self.sound_url = url


class HighlightResolver:
    """Resolves the highlight state of messages against a settings snapshot"""

    def __init__(self, settings: HighlightSettings,
                 fallback_sound: Optional[Callable[[HighlightSettings], str]] = None,
                 debug: bool = False):
        """
        Initialize resolver

        Args:
            settings: Frozen highlight settings
            fallback_sound: Returns the sound URL for rules without a custom
                            sound (defaults to get_fallback_highlight_sound)
            debug: Print which rules matched
        """
        self.settings = settings
        self.fallback_sound = fallback_sound or get_fallback_highlight_sound
        self.debug = debug

        self.categories: Tuple[Tuple[str, Callable[[ChatMessage, HighlightResult], bool]], ...] = (
            ("subscription", self._check_subscription),
            ("blacklist", self._check_blacklist),
            ("whisper", self._check_whisper),
            ("users", self._check_users),
            ("self", self._check_self),
            ("phrases", self._check_phrases),
            ("badges", self._check_badges),
        )

    def resolve(self, message: ChatMessage) -> HighlightResult:
        """
        Resolve the highlight state of a message

        The message itself is not modified, see apply().

        Args:
            message: Incoming message

        Returns:
            HighlightResult
        """
        result = HighlightResult()

        for name, check in self.categories:
            if check(message, result):
                result.stopped_by = name
                self._log(f"Highlight resolution for {message.sender} stopped at {name}")
                break

        return result

    @staticmethod
    def apply(message: ChatMessage, result: HighlightResult) -> None:
        """Copy the resolved highlight state onto a message"""
        message.highlighted = message.highlighted or result.highlighted
        if result.color is not None:
            message.highlight_color = result.color
        message.show_in_mentions = message.show_in_mentions or result.show_in_mentions

    def resolve_message(self, message: ChatMessage) -> HighlightResult:
        """Resolve a message and store the result on it"""
        result = self.resolve(message)
        self.apply(message, result)
        return result

    def effective_phrases(self) -> List[HighlightPhrase]:
        """
        Configured phrase rules, followed by the self-mention rule when enabled

        Returns:
            Phrase rules in evaluation order
        """
        settings = self.settings
        phrases = list(settings.rules.phrases)

        user = settings.current_user
        if settings.enable_self_highlight and user.name and not user.is_anonymous:
            phrases.append(HighlightPhrase(
                pattern=user.name,
                show_in_mentions=settings.show_self_highlight_in_mentions,
                has_alert=settings.enable_self_highlight_taskbar,
                has_sound=settings.enable_self_highlight_sound,
                is_regex=False,
                case_sensitive=False,
                sound_url=settings.self_highlight_sound_url,
                color=settings.self_highlight_color,
            ))

        return phrases

    # =========================================================================
    # Categories - each returns True to end resolution
    # =========================================================================

    def _check_subscription(self, message: ChatMessage, result: HighlightResult) -> bool:
        settings = self.settings
        if not (message.is_subscription and settings.enable_sub_highlight):
            return False

        if settings.enable_sub_highlight_taskbar:
            result.request_alert()

        if settings.enable_sub_highlight_sound:
            self._request_sound(result, settings.sub_highlight_sound_url)

        result.highlighted = True
        result.color = settings.sub_highlight_color
        return False

    def _check_blacklist(self, message: ChatMessage, result: HighlightResult) -> bool:
        return self.settings.is_blacklisted_user(message.sender)

    def _check_whisper(self, message: ChatMessage, result: HighlightResult) -> bool:
        settings = self.settings
        if not (message.is_whisper and settings.enable_whisper_highlight):
            return False

        if settings.enable_whisper_highlight_taskbar:
            result.request_alert()

        if settings.enable_whisper_highlight_sound:
            self._request_sound(result, settings.whisper_highlight_sound_url)

        # Not protected: user, phrase and badge rules may still recolor it
        self._set_color(message, result, settings.whisper_highlight_color)
        return False

    def _check_users(self, message: ChatMessage, result: HighlightResult) -> bool:
        for rule in self.settings.rules.users:
            if not rule.is_match(message.sender):
                continue

            self._log(f"Highlight because user {message.sender} sent a message")
            self._apply_phrase(message, result, rule)

            # User rules beat phrase and badge rules once nothing is left to add
            if result.done:
                return True

        return False

    def _check_self(self, message: ChatMessage, result: HighlightResult) -> bool:
        name = self.settings.current_user.name
        return bool(name) and message.sender.lower() == name.lower()

    def _check_phrases(self, message: ChatMessage, result: HighlightResult) -> bool:
        for rule in self.effective_phrases():
            if not rule.is_match(message.text):
                continue

            self._log(f"Highlight because message matched {rule.pattern!r}")
            self._apply_phrase(message, result, rule)

            if result.done:
                break

        return False

    def _check_badges(self, message: ChatMessage, result: HighlightResult) -> bool:
        badges = parse_badges(message.tags)
        colored = False

        for rule in self.settings.rules.badges:
            for badge in badges:
                if not rule.is_match(badge):
                    continue

                if not colored:
                    self._log(f"Highlight because of badge {badge.key}")
                    result.highlighted = True
                    self._set_color(message, result, rule.color)
                    colored = True

                if rule.has_alert:
                    result.request_alert()

                if rule.has_sound:
                    self._request_sound(result, rule.sound_url)

                if result.done:
                    break

        return False

    # =========================================================================
    # Helpers
    # =========================================================================

    def _apply_phrase(self, message: ChatMessage, result: HighlightResult,
                      rule: HighlightPhrase) -> None:
        result.highlighted = True
        self._set_color(message, result, rule.color)

        if rule.show_in_mentions:
            result.show_in_mentions = True

        if rule.has_alert:
            result.request_alert()

        if rule.has_sound:
            self._request_sound(result, rule.sound_url)

    def _set_color(self, message: ChatMessage, result: HighlightResult, color: str) -> None:
        # Subscription color stays while sub highlights are enabled
        if message.is_subscription and self.settings.enable_sub_highlight:
            return
        result.color = color

    def _request_sound(self, result: HighlightResult, custom_url: str) -> None:
        # The fallback lookup touches the filesystem, skip it once a sound is set
        if not result.sound:
            result.request_sound(self._sound_url(custom_url))

    def _sound_url(self, custom_url: str) -> str:
        url = to_sound_url(custom_url)
        if url:
            return url
        return self.fallback_sound(self.settings)

    def _log(self, text: str) -> None:
        if self.debug:
            print(text)
