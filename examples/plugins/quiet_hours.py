"""
Quiet Hours Plugin for Chat Highlights

Keeps highlighting messages at night but suppresses their sounds and
alerts. Messages from users on the VIP list still get through.

To use: Copy this file to ~/.config/chat-highlights/plugins/
"""

from datetime import datetime

from chat_highlights.plugin_specs import hookimpl


class Plugin:
    """Suppress highlight notifications between START_HOUR and END_HOUR"""

    START_HOUR = 23
    END_HOUR = 8

    def __init__(self):
        self.vips = {"mod_friend"}

    def _is_quiet(self, hour):
        if self.START_HOUR > self.END_HOUR:
            return hour >= self.START_HOUR or hour < self.END_HOUR
        return self.START_HOUR <= hour < self.END_HOUR

    @hookimpl
    def filter_highlight(self, ctx, message, result):
        if message.sender in self.vips:
            return None
        if self._is_quiet(datetime.now().hour):
            return True
        return None
