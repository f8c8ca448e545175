"""
Mention Summary Plugin for Chat Highlights

Counts highlights per channel and prints a summary on exit.

To use: Copy this file to ~/.config/chat-highlights/plugins/
"""

from collections import Counter

from chat_highlights.plugin_specs import hookimpl


class Plugin:
    """Per-channel highlight counter"""

    def __init__(self):
        self.counts = Counter()

    @hookimpl
    def on_highlight(self, ctx, message, result):
        self.counts[message.channel] += 1

    @hookimpl
    def on_shutdown(self, ctx):
        if not self.counts:
            return
        print("Highlights this session:")
        for channel, count in self.counts.most_common():
            print(f"  {channel}: {count}")
