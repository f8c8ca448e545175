#!/usr/bin/env python3
"""
IRC Manager for Chat Highlights
Connects to Twitch chat using miniirc and turns IRC events into ChatMessages
"""

import random
from typing import Dict, Callable, Optional, List, Any
from gi.repository import GLib

try:
    import miniirc
    MINIIRC_AVAILABLE = True
except ImportError:
    MINIIRC_AVAILABLE = False
    print("Warning: miniirc not available. Please install with: pip install miniirc")

from .models import ChatMessage
from .settings import normalize_channel


TWITCH_CAPS = {"twitch.tv/tags", "twitch.tv/commands"}

# USERNOTICE msg-id values that mark a subscription event
SUBSCRIPTION_NOTICES = frozenset({
    "sub",
    "resub",
    "subgift",
    "submysterygift",
    "giftpaidupgrade",
    "anongiftpaidupgrade",
    "primepaidupgrade",
    "extendsub",
    "standardpayforward",
    "communitypayforward",
})

WHISPER_CHANNEL = "whispers"


def _tag(tags: Dict[str, Any], key: str) -> str:
    """Get a tag value as a string (miniirc uses True for value-less tags)"""
    value = tags.get(key) if tags else None
    return value if isinstance(value, str) else ""


class TwitchConnection:
    """A Twitch chat connection"""

    def __init__(self, server_config: Dict[str, Any], callbacks: Dict[str, Callable]):
        """
        Initialize Twitch connection

        Args:
            server_config: Dict with host, port, ssl, nickname, oauth_token, channels
            callbacks: Dict of callback functions (on_connect, on_chat_message)
        """
        self.host = server_config.get("host", "irc.chat.twitch.tv")
        self.port = server_config.get("port", 6697)
        self.ssl = server_config.get("ssl", True)
        self.channels = [
            f"#{name}" for name in (normalize_channel(c) for c in server_config.get("channels", [])) if name
        ]

        self.oauth_token = server_config.get("oauth_token", "")
        nickname = (server_config.get("nickname") or "").strip().lower()
        if not nickname or not self.oauth_token:
            # Read-only anonymous login
            nickname = f"justinfan{random.randint(10000, 99999)}"
        self.nickname = nickname

        self.callbacks = callbacks
        self.irc: Optional[miniirc.IRC] = None
        self.connected = False

    def _call_callback(self, callback_name: str, *args) -> bool:
        """
        Helper to call a callback and ensure it returns False for GLib.idle_add

        Args:
            callback_name: Name of callback in self.callbacks dict
            *args: Arguments to pass to callback

        Returns:
            False (to prevent callback from being called again)
        """
        callback = self.callbacks.get(callback_name)
        if callback:
            callback(*args)
        return False

    def connect(self) -> bool:
        """
        Connect to Twitch chat

        Returns:
            True if connection initiated successfully
        """
        if not MINIIRC_AVAILABLE:
            print("miniirc not available")
            return False

        server_password = None
        if self.oauth_token:
            token = self.oauth_token
            server_password = token if token.startswith("oauth:") else f"oauth:{token}"

        try:
            self.irc = miniirc.IRC(
                ip=self.host,
                port=self.port,
                nick=self.nickname,
                channels=self.channels,
                ssl=self.ssl,
                ident=self.nickname,
                realname=self.nickname,
                auto_connect=False,
                ping_interval=60,
                persist=True,
                server_password=server_password,
                ircv3_caps=set(TWITCH_CAPS)
            )

            self._register_handlers()

            # Start connection in separate thread
            self.irc.connect()
            return True

        except Exception as e:
            print(f"Failed to connect to {self.host}: {e}")
            return False

    def _register_handlers(self) -> None:
        """Register IRC event handlers"""

        @self.irc.Handler("001", colon=False)
        def on_connect(irc, hostmask, args):
            self.connected = True
            GLib.idle_add(self._call_callback, "on_connect", self.host)

        @self.irc.Handler("PRIVMSG", colon=False, ircv3=True)
        def on_privmsg(irc, hostmask, args, tags):
            message = self.build_privmsg(hostmask, args, tags)
            if message:
                GLib.idle_add(self._call_callback, "on_chat_message", message)

        @self.irc.Handler("WHISPER", colon=False, ircv3=True)
        def on_whisper(irc, hostmask, args, tags):
            message = self.build_whisper(hostmask, args, tags)
            if message:
                GLib.idle_add(self._call_callback, "on_chat_message", message)

        @self.irc.Handler("USERNOTICE", colon=False, ircv3=True)
        def on_usernotice(irc, hostmask, args, tags):
            message = self.build_usernotice(hostmask, args, tags)
            if message:
                GLib.idle_add(self._call_callback, "on_chat_message", message)

    # =========================================================================
    # Message builders (run on the miniirc thread, must not touch GLib state)
    # =========================================================================

    @staticmethod
    def build_privmsg(hostmask, args: List[str], tags: Dict[str, Any]) -> Optional[ChatMessage]:
        """
        Build a ChatMessage from a PRIVMSG

        Args:
            hostmask: (nick, user, host) tuple
            args: [channel, text]
            tags: IRCv3 tags

        Returns:
            ChatMessage, or None if the line is malformed
        """
        if len(args) < 2 or not hostmask:
            return None

        text = args[-1]
        is_action = False
        # CTCP ACTION (/me)
        if text.startswith('\x01ACTION ') and text.endswith('\x01'):
            text = text[8:-1]
            is_action = True

        return ChatMessage(
            channel=normalize_channel(args[0]),
            sender=hostmask[0].lower(),
            text=text,
            tags=dict(tags or {}),
            is_action=is_action,
        )

    @staticmethod
    def build_whisper(hostmask, args: List[str], tags: Dict[str, Any]) -> Optional[ChatMessage]:
        """Build a ChatMessage from a received WHISPER"""
        if len(args) < 2 or not hostmask:
            return None

        return ChatMessage(
            channel=WHISPER_CHANNEL,
            sender=hostmask[0].lower(),
            text=args[-1],
            tags=dict(tags or {}),
            is_whisper=True,
        )

    @staticmethod
    def build_usernotice(hostmask, args: List[str], tags: Dict[str, Any]) -> Optional[ChatMessage]:
        """
        Build a ChatMessage from a USERNOTICE

        Only subscription notices become messages; raids, rituals and
        announcements are ignored.
        """
        if not args or _tag(tags, "msg-id") not in SUBSCRIPTION_NOTICES:
            return None

        system_text = _tag(tags, "system-msg")
        # The user's own resub message, if they wrote one
        text = args[1] if len(args) > 1 else ""

        return ChatMessage(
            channel=normalize_channel(args[0]),
            sender=_tag(tags, "login").lower(),
            text=text or system_text,
            tags=dict(tags or {}),
            is_subscription=True,
            system_text=system_text,
        )

    # =========================================================================
    # Commands
    # =========================================================================

    def join_channel(self, channel: str) -> None:
        """
        Join a channel

        Args:
            channel: Channel name (with or without '#')
        """
        name = normalize_channel(channel)
        if not name:
            return
        if f"#{name}" not in self.channels:
            self.channels.append(f"#{name}")
        if self.irc and self.connected:
            self.irc.quote(f"JOIN #{name}")

    def part_channel(self, channel: str) -> None:
        """
        Leave a channel

        Args:
            channel: Channel name (with or without '#')
        """
        name = normalize_channel(channel)
        if f"#{name}" in self.channels:
            self.channels.remove(f"#{name}")
        if self.irc and self.connected:
            self.irc.quote(f"PART #{name}")

    def disconnect(self) -> None:
        """Disconnect from Twitch chat"""
        if self.irc:
            try:
                self.irc.disconnect()
            except Exception as e:
                print(f"Error disconnecting from {self.host}: {e}")
        self.connected = False
