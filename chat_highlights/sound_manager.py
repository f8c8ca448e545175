#!/usr/bin/env python3
"""
Sound Manager for Chat Highlights
Resolves highlight sound URLs and plays them using GStreamer
"""

import os
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

try:
    import gi
    gi.require_version('Gst', '1.0')
    from gi.repository import Gst
    Gst.init(None)
    GST_AVAILABLE = True
except (ImportError, ValueError) as e:
    GST_AVAILABLE = False
    print(f"Warning: GStreamer not available: {e}")
    print("Sound notifications will be disabled.")


DEFAULT_HIGHLIGHT_SOUND_PATH = Path(__file__).parent / "data" / "sounds" / "ping.wav"
DEFAULT_HIGHLIGHT_SOUND_URL = DEFAULT_HIGHLIGHT_SOUND_PATH.as_uri()


def to_sound_url(value: Optional[str]) -> str:
    """
    Turn a configured sound location into a URL

    Args:
        value: URL (file://, https://, ...) or local file path

    Returns:
        URL string, or "" if nothing is configured or the URL is unusable
    """
    if not value:
        return ""

    value = value.strip()
    try:
        scheme = urlparse(value).scheme
    except ValueError as e:
        print(f"Warning: Ignoring invalid sound URL {value!r}: {e}")
        return ""

    # Windows drive letters parse as a one-letter scheme
    if len(scheme) > 1:
        return value

    return Path(os.path.abspath(os.path.expanduser(value))).as_uri()


def get_fallback_highlight_sound(settings) -> str:
    """
    Sound used by any highlight that requests a sound without a custom URL

    Args:
        settings: HighlightSettings snapshot

    Returns:
        URL of the user's custom highlight sound if enabled and the file
        exists, otherwise the bundled ping sound
    """
    path = settings.highlight_sound_path
    if settings.custom_highlight_sound and path:
        path = os.path.expanduser(path)
        if os.path.isfile(path):
            return Path(os.path.abspath(path)).as_uri()

    return DEFAULT_HIGHLIGHT_SOUND_URL


def check_default_sound() -> bool:
    """
    Check that the bundled ping sound has been generated

    Returns:
        True if data/sounds/ping.wav exists
    """
    if DEFAULT_HIGHLIGHT_SOUND_PATH.is_file():
        return True

    print(f"Warning: Default highlight sound {DEFAULT_HIGHLIGHT_SOUND_PATH} is missing.")
    print("Generate it with: python scripts/generate_sounds.py (needs the soundgen extra)")
    return False


class SoundManager:
    """Plays highlight sounds through a single GStreamer playbin"""

    def __init__(self, config_manager):
        """
        Initialize sound manager

        Args:
            config_manager: ConfigManager instance for the sound settings
        """
        self.config = config_manager
        self.player = None
        self.uri: Optional[str] = None
        self.initialized = False

        if GST_AVAILABLE and self.config.are_sounds_enabled():
            self._initialize_player()

    def _initialize_player(self) -> None:
        """Create the playbin element and watch its bus"""
        try:
            player = Gst.ElementFactory.make("playbin", "highlight_player")
            if not player:
                print("Failed to create highlight sound player")
                return

            bus = player.get_bus()
            bus.add_signal_watch()
            bus.connect("message", self._on_bus_message, player)

            self.player = player
            self.set_volume(self.config.get_sound_volume())
            self.initialized = True
            print("Sound system initialized (GStreamer)")
        except Exception as e:
            print(f"Failed to initialize sound system: {e}")
            self.player = None
            self.initialized = False

    def _on_bus_message(self, bus, message, player) -> None:
        if message.type == Gst.MessageType.EOS:
            # End of stream - stop playback
            player.set_state(Gst.State.NULL)
        elif message.type == Gst.MessageType.ERROR:
            err, debug = message.parse_error()
            print(f"GStreamer error: {err}")
            player.set_state(Gst.State.NULL)

    def set_highlight_uri(self, uri: str) -> None:
        """
        Load a new sound into the player

        Args:
            uri: URI of the sound (file://, https://, ...)
        """
        self.uri = uri
        if not self.initialized or not self.player:
            return

        try:
            self.player.set_state(Gst.State.NULL)
            self.player.set_property("uri", uri)
        except Exception as e:
            print(f"Failed to load highlight sound {uri}: {e}")

    def play_highlight(self) -> None:
        """(Re)start playback of the loaded sound"""
        if not self.initialized or not self.player or not self.uri:
            return
        if not self.config.are_sounds_enabled():
            return

        try:
            # Stop any currently playing instance and reset to start
            self.player.set_state(Gst.State.NULL)
            self.player.set_state(Gst.State.PLAYING)
        except Exception as e:
            print(f"Failed to play highlight sound: {e}")

    def set_volume(self, volume: float) -> None:
        """
        Set playback volume

        Args:
            volume: Volume level (0.0 to 1.0)
        """
        if not self.player:
            return

        clamped_volume = max(0.0, min(1.0, volume))
        self.player.set_property("volume", clamped_volume)

    def cleanup(self) -> None:
        """Clean up sound resources"""
        if self.initialized and self.player:
            try:
                self.player.set_state(Gst.State.NULL)
                self.player.get_bus().remove_signal_watch()
            except Exception as e:
                print(f"Error during sound cleanup: {e}")

        self.player = None
        self.uri = None
        self.initialized = False
