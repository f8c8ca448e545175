#!/usr/bin/env python3
"""
Chat data models for Chat Highlights
Plain records shared by the IRC bridge, the resolver and the plugins
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Any


@dataclass(frozen=True)
class CurrentUser:
    """The logged-in account"""

    name: str = ""
    is_anonymous: bool = True

    @classmethod
    def from_login(cls, name: str, oauth_token: str = "") -> "CurrentUser":
        """
        Build the current user from configured credentials

        Args:
            name: Login name
            oauth_token: OAuth token (empty for read-only justinfan logins)

        Returns:
            CurrentUser instance
        """
        name = (name or "").strip()
        anonymous = not oauth_token or not name or name.lower().startswith("justinfan")
        return cls(name=name, is_anonymous=anonymous)


@dataclass
class ChatMessage:
    """A single incoming chat message"""

    channel: str
    sender: str
    text: str
    tags: Dict[str, Any] = field(default_factory=dict)
    is_action: bool = False  # /me messages
    is_whisper: bool = False  # Received whisper
    is_subscription: bool = False  # USERNOTICE sub/resub/subgift
    system_text: str = ""  # e.g. "UserX subscribed for 12 months!"

    # Filled in by HighlightResolver.apply()
    highlighted: bool = False
    highlight_color: Optional[str] = None
    show_in_mentions: bool = False

    @property
    def display_name(self) -> str:
        """Display name from tags, falling back to the login name"""
        name = self.tags.get("display-name")
        if isinstance(name, str) and name:
            return name
        return self.sender
