#!/usr/bin/env python3
"""
Configuration Manager for Chat Highlights
Handles loading and saving configuration in JSON format
"""

import copy
import json
import os
import shutil
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from .highlight_rules import (
    HighlightBadge,
    HighlightBlacklistUser,
    HighlightPhrase,
    HighlightRuleSet,
    IgnorePhrase,
    SELF_HIGHLIGHT_COLOR,
    SUBSCRIPTION_COLOR,
    WHISPER_COLOR,
)
from .models import CurrentUser
from .settings import (
    HighlightSettings,
    STREAMER_MODE_DETECT_OBS,
    STREAMER_MODE_DISABLED,
    STREAMER_MODE_ENABLED,
    normalize_channel,
    normalize_channels,
)


STREAMER_MODES = (STREAMER_MODE_DISABLED, STREAMER_MODE_ENABLED, STREAMER_MODE_DETECT_OBS)


class ConfigManager:
    """Manages application configuration stored in JSON format"""

    DEFAULT_CONFIG = {
        "nickname": "",
        "oauth_token": "",
        "channels": [],
        "server": {
            "host": "irc.chat.twitch.tv",
            "port": 6697,
            "ssl": True
        },
        "sounds": {
            "enabled": True,
            "volume": 1.0,
            "custom_highlight_sound": False,
            "highlight_sound_path": "",
            "always_play": False
        },
        "highlights": {
            "subscriptions": {
                "enabled": True,
                "taskbar": True,
                "sound": True,
                "sound_url": "",
                "color": SUBSCRIPTION_COLOR
            },
            "whispers": {
                "enabled": True,
                "taskbar": True,
                "sound": False,
                "sound_url": "",
                "color": WHISPER_COLOR
            },
            "self": {
                "enabled": True,
                "taskbar": True,
                "sound": True,
                "show_in_mentions": True,
                "sound_url": "",
                "color": SELF_HIGHLIGHT_COLOR
            },
            "users": [],
            "phrases": [],
            "badges": [],
            "blacklist": [],
            "ignores": []
        },
        "muted_channels": [],
        "streamer_mode": {
            "mode": STREAMER_MODE_DISABLED,
            "mute_mentions": True
        },
        "logging": {
            "mentions_directory": ""
        },
        "debug": False
    }

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize config manager

        Args:
            config_path: Path to the configuration file (defaults to ~/.config/chat-highlights/config.json)
        """
        if config_path is None:
            # Use XDG config directory
            config_dir = Path.home() / ".config" / "chat-highlights"
            config_dir.mkdir(parents=True, exist_ok=True)
            self.config_path = str(config_dir / "config.json")
        else:
            self.config_path = config_path

        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from file, creating default if doesn't exist

        Returns:
            Configuration dictionary
        """
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    config = json.load(f)
                if not isinstance(config, dict):
                    raise ValueError("top level must be an object")
                # Merge with defaults to ensure all keys exist
                return self._merge_with_defaults(config)
            except (json.JSONDecodeError, IOError, ValueError) as e:
                print(f"Error loading config: {e}")
                print("Using default configuration")
                return copy.deepcopy(self.DEFAULT_CONFIG)

        config = None

        # Start from the bundled example config if there is one
        example_config = self._find_example_config()
        if example_config:
            try:
                with open(example_config, 'r', encoding='utf-8') as f:
                    config = self._merge_with_defaults(json.load(f))
            except (IOError, json.JSONDecodeError) as e:
                print(f"Error loading example config: {e}")

        if config is None:
            config = copy.deepcopy(self.DEFAULT_CONFIG)

        self.save_config(config)
        print(f"Created config: {self.config_path}")
        return config

    def reload(self) -> None:
        """Re-read the configuration file"""
        self.config = self._load_config()

    def _find_example_config(self) -> Optional[str]:
        """
        Find the example config shipped with the package

        Returns:
            Path to example config or None if not found
        """
        example_path = Path(__file__).parent / "data" / "config.json.example"
        if example_path.exists():
            return str(example_path)
        return None

    def _merge_with_defaults(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge user config with defaults to ensure all keys exist

        Nested sections are merged recursively; lists are taken as-is
        from the user config.

        Args:
            config: User configuration

        Returns:
            Merged configuration
        """
        def merge(defaults: Dict[str, Any], values: Dict[str, Any]) -> Dict[str, Any]:
            merged = copy.deepcopy(defaults)
            for key, value in values.items():
                if isinstance(merged.get(key), dict) and isinstance(value, dict):
                    merged[key] = merge(merged[key], value)
                else:
                    merged[key] = value
            return merged

        return merge(self.DEFAULT_CONFIG, config)

    def save_config(self, config: Optional[Dict[str, Any]] = None) -> bool:
        """
        Save configuration to file atomically

        Uses a write-to-temp-then-rename strategy to prevent data loss
        if the save is interrupted. Also creates a backup of the previous
        config file.

        Args:
            config: Configuration to save (uses self.config if None)

        Returns:
            True if successful, False otherwise
        """
        if config is None:
            config = self.config

        temp_path = f"{self.config_path}.tmp"
        backup_path = f"{self.config_path}.backup"

        try:
            # Write to temporary file first
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(config, f, indent=2)

            # Create backup of existing config if it exists
            if os.path.exists(self.config_path):
                try:
                    shutil.copy2(self.config_path, backup_path)
                except IOError as e:
                    # Backup failure is not fatal, just warn
                    print(f"Warning: Could not create config backup: {e}")

            # Atomic rename (on POSIX systems)
            os.replace(temp_path, self.config_path)
            return True

        except IOError as e:
            print(f"Error saving config: {e}")
            # Clean up temp file if it exists
            try:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
            except OSError:
                pass
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            key: Configuration key
            default: Default value if key doesn't exist

        Returns:
            Configuration value
        """
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value

        Args:
            key: Configuration key
            value: Value to set
        """
        self.config[key] = value

    def _section(self, name: str) -> Dict[str, Any]:
        """Get a config section, creating it if missing"""
        section = self.config.get(name)
        if not isinstance(section, dict):
            section = copy.deepcopy(self.DEFAULT_CONFIG.get(name, {}))
            self.config[name] = section
        return section

    # Account

    def get_nickname(self) -> str:
        """Get configured login name"""
        return self.config.get("nickname", "")

    def set_nickname(self, nickname: str) -> None:
        """Set login name and save"""
        self.config["nickname"] = nickname.strip()
        self.save_config()

    def get_oauth_token(self) -> str:
        """Get configured OAuth token"""
        return self.config.get("oauth_token", "")

    def set_oauth_token(self, token: str) -> None:
        """Set OAuth token and save"""
        self.config["oauth_token"] = token.strip()
        self.save_config()

    def get_current_user(self) -> CurrentUser:
        """Get the account messages are received as"""
        return CurrentUser.from_login(self.get_nickname(), self.get_oauth_token())

    def get_server(self) -> Dict[str, Any]:
        """Get IRC server settings (host, port, ssl)"""
        return self._section("server")

    # Channels

    def get_channels(self) -> List[str]:
        """Get list of channels to join"""
        return self.config.get("channels", [])

    def add_channel(self, channel: str) -> bool:
        """
        Add a channel to join on startup

        Args:
            channel: Channel name, with or without '#'

        Returns:
            True if added, False if empty or already present
        """
        name = normalize_channel(channel)
        channels = self.get_channels()
        if not name or name in (normalize_channel(c) for c in channels):
            return False

        channels.append(name)
        self.config["channels"] = channels
        self.save_config()
        return True

    def remove_channel(self, channel: str) -> bool:
        """
        Remove a channel

        Returns:
            True if removed, False if not found
        """
        name = normalize_channel(channel)
        channels = self.get_channels()
        remaining = [c for c in channels if normalize_channel(c) != name]
        if len(remaining) == len(channels):
            return False

        self.config["channels"] = remaining
        self.save_config()
        return True

    # Sounds

    def are_sounds_enabled(self) -> bool:
        """Check if sounds are enabled"""
        return self.config.get("sounds", {}).get("enabled", True)

    def get_sound_volume(self) -> float:
        """Get playback volume (0.0 to 1.0)"""
        try:
            return float(self.config.get("sounds", {}).get("volume", 1.0))
        except (TypeError, ValueError):
            return 1.0

    def set_custom_highlight_sound(self, enabled: bool, path: Optional[str] = None) -> None:
        """
        Configure the sound used when a highlight has no sound of its own

        Args:
            enabled: Use the custom sound file
            path: Path to the sound file (unchanged if None)
        """
        sounds = self._section("sounds")
        sounds["custom_highlight_sound"] = enabled
        if path is not None:
            sounds["highlight_sound_path"] = path
        self.save_config()

    def set_always_play_sound(self, enabled: bool) -> None:
        """Play highlight sounds even when the application has focus"""
        self._section("sounds")["always_play"] = enabled
        self.save_config()

    # Built-in highlight categories (subscriptions, whispers, self)

    def get_highlight_options(self, category: str) -> Dict[str, Any]:
        """
        Get options of a built-in highlight category

        Args:
            category: "subscriptions", "whispers" or "self"

        Returns:
            Options dict (enabled, taskbar, sound, sound_url, color, ...)
        """
        highlights = self._section("highlights")
        defaults = self.DEFAULT_CONFIG["highlights"].get(category)
        if not isinstance(defaults, dict):
            raise KeyError(f"Unknown highlight category: {category}")

        options = highlights.get(category)
        if not isinstance(options, dict):
            options = copy.deepcopy(defaults)
            highlights[category] = options
        return options

    def set_highlight_option(self, category: str, key: str, value: Any) -> None:
        """
        Set an option of a built-in highlight category and save

        Args:
            category: "subscriptions", "whispers" or "self"
            key: Option name
            value: New value
        """
        self.get_highlight_options(category)[key] = value
        self.save_config()

    # Rule lists

    def _get_rule_list(self, name: str) -> List[Any]:
        highlights = self._section("highlights")
        rules = highlights.get(name)
        if not isinstance(rules, list):
            rules = []
            highlights[name] = rules
        return rules

    def _add_rule(self, name: str, rule: Union[Dict[str, Any], Any]) -> None:
        entry = rule.to_dict() if hasattr(rule, "to_dict") else dict(rule)
        self._get_rule_list(name).append(entry)
        self.save_config()

    def _remove_rule(self, name: str, index: int) -> bool:
        rules = self._get_rule_list(name)
        if 0 <= index < len(rules):
            rules.pop(index)
            self.save_config()
            return True
        return False

    def get_highlight_phrases(self) -> List[Dict[str, Any]]:
        """Get configured phrase rules"""
        return self._get_rule_list("phrases")

    def add_highlight_phrase(self, phrase: Union[HighlightPhrase, Dict[str, Any]]) -> None:
        """Append a phrase rule and save"""
        self._add_rule("phrases", phrase)

    def remove_highlight_phrase(self, index: int) -> bool:
        """Remove phrase rule at index"""
        return self._remove_rule("phrases", index)

    def get_user_highlights(self) -> List[Dict[str, Any]]:
        """Get configured per-user rules"""
        return self._get_rule_list("users")

    def add_user_highlight(self, rule: Union[HighlightPhrase, Dict[str, Any]]) -> None:
        """Append a per-user rule and save"""
        self._add_rule("users", rule)

    def remove_user_highlight(self, index: int) -> bool:
        """Remove per-user rule at index"""
        return self._remove_rule("users", index)

    def get_badge_highlights(self) -> List[Dict[str, Any]]:
        """Get configured badge rules"""
        return self._get_rule_list("badges")

    def add_badge_highlight(self, rule: Union[HighlightBadge, Dict[str, Any]]) -> None:
        """Append a badge rule and save"""
        self._add_rule("badges", rule)

    def remove_badge_highlight(self, index: int) -> bool:
        """Remove badge rule at index"""
        return self._remove_rule("badges", index)

    # Ignored phrases

    def get_ignore_phrases(self) -> List[Dict[str, Any]]:
        """Get phrases whose messages are dropped before highlighting"""
        return self._get_rule_list("ignores")

    def add_ignore_phrase(self, phrase: Union[IgnorePhrase, Dict[str, Any]]) -> None:
        """Append an ignore phrase and save"""
        self._add_rule("ignores", phrase)

    def remove_ignore_phrase(self, index: int) -> bool:
        """Remove ignore phrase at index"""
        return self._remove_rule("ignores", index)

    # Highlight blacklist

    def get_blacklisted_users(self) -> List[Any]:
        """Get users whose messages never highlight"""
        return self._get_rule_list("blacklist")

    def add_blacklisted_user(self, pattern: str, regex: bool = False) -> bool:
        """
        Add a user to the highlight blacklist

        Args:
            pattern: Login name, or a regular expression if regex is set
            regex: Treat pattern as a regular expression

        Returns:
            True if added, False if empty or already present
        """
        pattern = pattern.strip()
        if not regex:
            pattern = pattern.lower()
        if not pattern:
            return False

        for entry in self.get_blacklisted_users():
            existing = HighlightBlacklistUser.from_dict(entry)
            if existing.is_regex == regex and existing.pattern.lower() == pattern.lower():
                return False

        self._add_rule("blacklist", HighlightBlacklistUser(pattern=pattern, is_regex=regex))
        return True

    def remove_blacklisted_user(self, pattern: str) -> bool:
        """
        Remove a blacklist entry (case-insensitive)

        Returns:
            True if removed, False if not found
        """
        blacklist = self.get_blacklisted_users()
        for index, entry in enumerate(blacklist):
            if HighlightBlacklistUser.from_dict(entry).pattern.lower() == pattern.strip().lower():
                return self._remove_rule("blacklist", index)
        return False

    # Muted channels

    def get_muted_channels(self) -> List[str]:
        """Get channels where highlight notifications are muted"""
        return self.config.get("muted_channels", [])

    def mute_channel(self, channel: str) -> bool:
        """
        Mute highlight notifications for a channel

        Returns:
            True if muted, False if empty or already muted
        """
        name = normalize_channel(channel)
        if not name or self.is_channel_muted(name):
            return False

        muted = self.get_muted_channels()
        muted.append(name)
        self.config["muted_channels"] = muted
        self.save_config()
        return True

    def unmute_channel(self, channel: str) -> bool:
        """
        Unmute a channel

        Returns:
            True if unmuted, False if it was not muted
        """
        name = normalize_channel(channel)
        muted = self.get_muted_channels()
        remaining = [c for c in muted if normalize_channel(c) != name]
        if len(remaining) == len(muted):
            return False

        self.config["muted_channels"] = remaining
        self.save_config()
        return True

    def is_channel_muted(self, channel: str) -> bool:
        """Check if a channel is muted (case-insensitive, '#' optional)"""
        return normalize_channel(channel) in normalize_channels(self.get_muted_channels())

    # Streamer mode

    def get_streamer_mode(self) -> str:
        """Get streamer mode setting ("disabled", "enabled" or "detect_obs")"""
        mode = self.config.get("streamer_mode", {}).get("mode", STREAMER_MODE_DISABLED)
        return mode if mode in STREAMER_MODES else STREAMER_MODE_DISABLED

    def set_streamer_mode(self, mode: str, mute_mentions: Optional[bool] = None) -> None:
        """
        Set streamer mode and save

        Args:
            mode: "disabled", "enabled" or "detect_obs"
            mute_mentions: Mute highlight sounds and alerts while streaming (unchanged if None)

        Raises:
            ValueError: If mode is not a known streamer mode
        """
        if mode not in STREAMER_MODES:
            raise ValueError(f"Unknown streamer mode: {mode}")

        section = self._section("streamer_mode")
        section["mode"] = mode
        if mute_mentions is not None:
            section["mute_mentions"] = mute_mentions
        self.save_config()

    # Logging

    def get_mentions_log_directory(self) -> str:
        """Get directory for the mentions log (empty disables it)"""
        return self.config.get("logging", {}).get("mentions_directory", "")

    def set_mentions_log_directory(self, directory: str) -> None:
        """Set mentions log directory and save"""
        self._section("logging")["mentions_directory"] = directory
        self.save_config()

    def is_debug_enabled(self) -> bool:
        """Check if highlight debugging output is enabled"""
        return bool(self.config.get("debug", False))

    # Snapshot

    def get_highlight_settings(self) -> HighlightSettings:
        """
        Freeze the current configuration for the highlight engine

        Returns:
            HighlightSettings snapshot
        """
        subs = self.get_highlight_options("subscriptions")
        whispers = self.get_highlight_options("whispers")
        own = self.get_highlight_options("self")
        sounds = self.config.get("sounds", {})
        streamer = self.config.get("streamer_mode", {})

        return HighlightSettings(
            enable_sub_highlight=bool(subs.get("enabled", True)),
            enable_sub_highlight_taskbar=bool(subs.get("taskbar", True)),
            enable_sub_highlight_sound=bool(subs.get("sound", True)),
            sub_highlight_sound_url=subs.get("sound_url") or "",
            sub_highlight_color=subs.get("color") or SUBSCRIPTION_COLOR,
            enable_whisper_highlight=bool(whispers.get("enabled", True)),
            enable_whisper_highlight_taskbar=bool(whispers.get("taskbar", True)),
            enable_whisper_highlight_sound=bool(whispers.get("sound", False)),
            whisper_highlight_sound_url=whispers.get("sound_url") or "",
            whisper_highlight_color=whispers.get("color") or WHISPER_COLOR,
            enable_self_highlight=bool(own.get("enabled", True)),
            enable_self_highlight_taskbar=bool(own.get("taskbar", True)),
            enable_self_highlight_sound=bool(own.get("sound", True)),
            show_self_highlight_in_mentions=bool(own.get("show_in_mentions", True)),
            self_highlight_sound_url=own.get("sound_url") or "",
            self_highlight_color=own.get("color") or SELF_HIGHLIGHT_COLOR,
            custom_highlight_sound=bool(sounds.get("custom_highlight_sound", False)),
            highlight_sound_path=sounds.get("highlight_sound_path") or "",
            highlight_always_play_sound=bool(sounds.get("always_play", False)),
            streamer_mode=self.get_streamer_mode(),
            streamer_mode_mute_mentions=bool(streamer.get("mute_mentions", True)),
            muted_channels=normalize_channels(self.get_muted_channels()),
            rules=HighlightRuleSet.from_config(self._section("highlights")),
            current_user=self.get_current_user(),
        )
