#!/usr/bin/env python3
"""
Chat Highlights - highlight and ping notifications for Twitch chat
Main application entry point
"""

import argparse
import signal
import sys

from gi.repository import GLib

from .alert_manager import AlertManager
from .config_manager import ConfigManager
from .highlight_log import MentionsLog
from .highlight_resolver import HighlightResolver
from .irc_manager import TwitchConnection
from .models import ChatMessage
from .notification_dispatcher import NotificationContext, NotificationDispatcher
from .plugin_manager import PluginManager
from .sound_manager import SoundManager, check_default_sound
from .streamer_mode import StreamerModeDetector


class HighlightApplication:
    """Main application class"""

    def __init__(self, config_path=None, debug=False):
        """
        Initialize application

        Args:
            config_path: Config file (defaults to ~/.config/chat-highlights/config.json)
            debug: Print highlight resolution details
        """
        self.config = ConfigManager(config_path)
        self.debug = debug or self.config.is_debug_enabled()

        self.sound = SoundManager(self.config)
        self.alerts = AlertManager()
        self.dispatcher = NotificationDispatcher(self.sound, self.alerts.send_alert)
        self.streamer = StreamerModeDetector()
        self.mentions = MentionsLog(self.config.get_mentions_log_directory())

        self.reload_settings()

        self.plugins = PluginManager()
        self.plugins.set_managers(self.config, self.dispatcher, self.alerts)

        callbacks = {
            "on_connect": self.on_connect,
            "on_chat_message": self.on_chat_message,
        }
        server = dict(self.config.get_server())
        server["nickname"] = self.config.get_nickname()
        server["oauth_token"] = self.config.get_oauth_token()
        server["channels"] = self.config.get_channels()
        self.connection = TwitchConnection(server, callbacks)

        self.loop = None

    def reload_settings(self) -> None:
        """Take a new settings snapshot; messages already resolved keep theirs"""
        self.settings = self.config.get_highlight_settings()
        self.resolver = HighlightResolver(self.settings, debug=self.debug)

    def on_connect(self, host: str) -> None:
        """Handle successful connection"""
        print(f"Connected to {host}")

    def on_chat_message(self, message: ChatMessage) -> None:
        """
        Resolve and notify for an incoming message (GLib main thread)

        Args:
            message: Message built by the IRC connection
        """
        settings = self.settings
        # Ignored messages are dropped before highlights, hooks and logging
        if settings.is_ignored_message(message.text):
            if self.debug:
                print(f"Ignoring message from {message.sender} in {message.channel}")
            return

        result = self.resolver.resolve_message(message)

        self.plugins.call_message(message)

        if message.highlighted:
            prefix = "*" if message.is_action else ">"
            print(f"[highlight] {message.channel} {prefix} {message.display_name}: {message.text}")
            self.plugins.call_highlight(message, result)
            self.mentions.log_mention(message)

        # Whispers can notify without being highlighted
        if not (result.alert or result.sound):
            return

        if self.plugins.filter_highlight(message, result):
            return

        context = NotificationContext(
            streamer_mode_active=self.streamer.is_active(settings.streamer_mode),
            application_focused=self.alerts.is_focused(),
        )
        self.dispatcher.trigger(result, message.channel, settings, context)

    def _on_reload_signal(self) -> bool:
        print("Reloading configuration")
        self.config.reload()
        self.mentions = MentionsLog(self.config.get_mentions_log_directory())
        self.reload_settings()
        return True

    def _on_quit_signal(self) -> bool:
        if self.loop:
            self.loop.quit()
        return False

    def run(self) -> int:
        """
        Run the application

        Returns:
            Exit code
        """
        num_plugins = self.plugins.discover_and_load_plugins()
        if num_plugins > 0:
            print(f"Loaded {num_plugins} plugin(s)")
        self.plugins.call_startup()

        if not self.connection.channels:
            print("No channels configured. Add some to the \"channels\" list in "
                  f"{self.config.config_path}")

        if not self.connection.connect():
            self.shutdown()
            return 1

        self.loop = GLib.MainLoop()
        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGINT, self._on_quit_signal)
        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGTERM, self._on_quit_signal)
        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGHUP, self._on_reload_signal)

        try:
            self.loop.run()
        finally:
            self.shutdown()
        return 0

    def shutdown(self) -> None:
        """Disconnect and release resources"""
        self.plugins.call_shutdown()
        self.connection.disconnect()
        self.sound.cleanup()


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        prog="chat-highlights",
        description="Highlight and ping notifications for Twitch chat"
    )
    parser.add_argument("--config", help="path to config.json")
    parser.add_argument("--debug", action="store_true",
                        help="print why messages were highlighted")
    args = parser.parse_args(argv)

    # Check for miniirc
    try:
        import miniirc  # noqa: F401
    except ImportError:
        print("Error: miniirc is required. Install with: pip install miniirc")
        return 1

    # Check for GStreamer (for sound)
    try:
        import gi
        gi.require_version('Gst', '1.0')
        from gi.repository import Gst  # noqa: F401
    except (ImportError, ValueError):
        print("Warning: GStreamer is not installed. Sound notifications will be disabled.")
        print("Install with system package manager: gstreamer1.0-plugins-base gstreamer1.0-plugins-good")

    # Check for the bundled ping sound
    check_default_sound()

    app = HighlightApplication(args.config, debug=args.debug)
    return app.run()


if __name__ == "__main__":
    sys.exit(main())
