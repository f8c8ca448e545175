"""
Plugin hook specifications for Chat Highlights

This module defines all the hooks that plugins can implement.
Plugins can observe resolved messages and veto highlight notifications.
"""

import pluggy

# Project name for pluggy
hookspec = pluggy.HookspecMarker("chat_highlights")
hookimpl = pluggy.HookimplMarker("chat_highlights")


class ChatHighlightsHookSpec:
    """Hook specifications for Chat Highlights plugins"""

    # =========================================================================
    # Lifecycle Hooks
    # =========================================================================

    @hookspec
    def on_startup(self, ctx):
        """Called when the application starts.

        Args:
            ctx: Plugin context object with access to application APIs
        """
        pass

    @hookspec
    def on_shutdown(self, ctx):
        """Called when the application is shutting down.

        Args:
            ctx: Plugin context object with access to application APIs
        """
        pass

    # =========================================================================
    # Message Hooks
    # =========================================================================

    @hookspec
    def on_message(self, ctx, message):
        """Called for every incoming message after highlight resolution.

        Args:
            ctx: Plugin context object
            message: ChatMessage with highlighted/highlight_color/show_in_mentions set
        """
        pass

    @hookspec
    def on_highlight(self, ctx, message, result):
        """Called for messages that were highlighted.

        Args:
            ctx: Plugin context object
            message: Highlighted ChatMessage
            result: HighlightResult (alert, sound, sound_url, ...)
        """
        pass

    @hookspec(firstresult=True)
    def filter_highlight(self, ctx, message, result):
        """Decide whether a highlight may notify.

        Called before the sound and alert are delivered. Plugins can:
        - Return None to let the notification through
        - Return True to suppress the sound and alert for this message

        The message stays highlighted either way.

        Args:
            ctx: Plugin context object
            message: ChatMessage
            result: HighlightResult

        Returns:
            None or True
        """
        pass
