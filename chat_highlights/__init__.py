"""
Chat Highlights - highlight and ping notifications for Twitch chat
"""

__version__ = "1.0.0"
__author__ = "Chat Highlights Contributors"
__license__ = "MIT"

from .badges import Badge, parse_badges
from .config_manager import ConfigManager
from .highlight_resolver import HighlightResolver, HighlightResult
from .highlight_rules import HighlightBadge, HighlightPhrase, HighlightRuleSet
from .models import ChatMessage, CurrentUser
from .notification_dispatcher import NotificationContext, NotificationDispatcher
from .settings import HighlightSettings

__all__ = [
    "Badge",
    "parse_badges",
    "ConfigManager",
    "HighlightResolver",
    "HighlightResult",
    "HighlightBadge",
    "HighlightPhrase",
    "HighlightRuleSet",
    "ChatMessage",
    "CurrentUser",
    "NotificationContext",
    "NotificationDispatcher",
    "HighlightSettings",
]
