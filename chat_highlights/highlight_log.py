#!/usr/bin/env python3
"""
Mentions log for Chat Highlights
Keeps a daily log of messages that belong in the mentions list
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import ChatMessage


class MentionsLog:
    """Appends highlighted mentions to mentions-YYYY-MM-DD.log"""

    def __init__(self, log_directory: Optional[str] = None):
        """
        Initialize mentions log

        Args:
            log_directory: Directory for log files (None or empty to disable)
        """
        self.log_directory = log_directory
        self.enabled = log_directory is not None and log_directory.strip() != ""
        self._write_lock = threading.Lock()

        if self.enabled:
            self._ensure_directory_exists(self.log_directory)

    def _ensure_directory_exists(self, directory: str) -> bool:
        """
        Ensure a directory exists, creating it if necessary

        Args:
            directory: Directory path

        Returns:
            True if directory exists or was created successfully
        """
        try:
            Path(directory).mkdir(parents=True, exist_ok=True)
            return True
        except (OSError, PermissionError) as e:
            print(f"Failed to create directory {directory}: {e}")
            return False

    def _get_log_file_path(self, when: datetime) -> Optional[str]:
        if not self.enabled or not self._ensure_directory_exists(self.log_directory):
            return None
        return str(Path(self.log_directory) / f"mentions-{when.strftime('%Y-%m-%d')}.log")

    @staticmethod
    def format_line(message: ChatMessage, when: datetime) -> str:
        """
        Format a message as a log line

        Args:
            message: Message to format
            when: Time the message was received

        Returns:
            Log line without trailing newline
        """
        timestamp = when.strftime("[%H:%M:%S]")
        channel = message.channel if message.is_whisper else f"#{message.channel}"
        text = " ".join(message.text.splitlines())
        if message.is_action:
            return f"{timestamp} {channel} * {message.display_name} {text}"
        return f"{timestamp} {channel} <{message.display_name}> {text}"

    def log_mention(self, message: ChatMessage, when: Optional[datetime] = None) -> bool:
        """
        Log a message if it is flagged to show in mentions

        Args:
            message: Resolved message
            when: Time received (defaults to now)

        Returns:
            True if a line was written
        """
        if not self.enabled or not message.show_in_mentions:
            return False

        when = when or datetime.now()
        log_file = self._get_log_file_path(when)
        if not log_file:
            return False

        try:
            with self._write_lock:
                with open(log_file, 'a', encoding='utf-8') as f:
                    f.write(self.format_line(message, when) + '\n')
            return True
        except (OSError, PermissionError) as e:
            print(f"Failed to write to log file {log_file}: {e}")
            return False
