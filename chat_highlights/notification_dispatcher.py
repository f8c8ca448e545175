#!/usr/bin/env python3
"""
Notification Dispatcher for Chat Highlights
Turns a resolved highlight into at most one sound and one alert
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .highlight_resolver import HighlightResult
from .settings import HighlightSettings


@dataclass(frozen=True)
class NotificationContext:
    """Runtime state sampled when a message is dispatched"""

    streamer_mode_active: bool = False
    application_focused: bool = False


@dataclass(frozen=True)
class NotificationOutcome:
    """What the dispatcher actually did for one message"""

    sound_played: bool = False
    alert_sent: bool = False
    suppressed_reason: Optional[str] = None


class NotificationDispatcher:
    """
    Delivers highlight notifications to the sound player and the alert sink

    Must only be used from the thread that owns message resolution (the GLib
    main loop); current_sound_url is not guarded.
    """

    def __init__(self, sound_player, alert_sink: Callable[[], None]):
        """
        Initialize dispatcher

        Args:
            sound_player: Object with set_highlight_uri(uri) and play_highlight()
            alert_sink: Called once per alerting message
        """
        self.sound_player = sound_player
        self.alert_sink = alert_sink
        self.current_sound_url: Optional[str] = None

    def trigger(self, result: HighlightResult, channel: str,
                settings: HighlightSettings,
                context: NotificationContext) -> NotificationOutcome:
        """
        Play the highlight sound and send the alert if they are due

        Args:
            result: Resolved highlight state of the message
            channel: Channel the message arrived in
            settings: Settings snapshot used to resolve the message
            context: Focus and streamer mode state

        Returns:
            NotificationOutcome
        """
        if context.streamer_mode_active and settings.streamer_mode_mute_mentions:
            return NotificationOutcome(suppressed_reason="streamer_mode")

        if settings.is_muted_channel(channel):
            return NotificationOutcome(suppressed_reason="muted_channel")

        sound_played = False
        play_while_focused = not context.application_focused or settings.highlight_always_play_sound
        if result.sound and result.sound_url and play_while_focused:
            self.play_sound(result.sound_url)
            sound_played = True

        alert_sent = False
        if result.alert:
            self.alert_sink()
            alert_sent = True

        return NotificationOutcome(sound_played=sound_played, alert_sent=alert_sent)

    def play_sound(self, url: str) -> None:
        """Play a sound, loading it first if it is not the current one"""
        # Reloading the same URI would restart decoding for nothing
        if url != self.current_sound_url:
            self.sound_player.set_highlight_uri(url)
            self.current_sound_url = url

        self.sound_player.play_highlight()
