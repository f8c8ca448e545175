#!/usr/bin/env python3
"""
Streamer mode detection for Chat Highlights
"""

import time
from pathlib import Path
from typing import Callable, Iterable, Optional

from .settings import (
    STREAMER_MODE_DETECT_OBS,
    STREAMER_MODE_ENABLED,
)


BROADCAST_PROCESS_NAMES = frozenset({"obs", "obs64", "obs-studio"})
DETECTION_CACHE_SECONDS = 20.0


def _running_process_names(proc_dir: str = "/proc") -> Iterable[str]:
    """Yield the command names of running processes (Linux procfs)"""
    try:
        entries = list(Path(proc_dir).iterdir())
    except OSError:
        return

    for entry in entries:
        if not entry.name.isdigit():
            continue
        try:
            yield (entry / "comm").read_text(encoding="utf-8", errors="replace").strip()
        except OSError:
            # Process exited while we were looking
            continue


class StreamerModeDetector:
    """Tells whether streamer mode is currently active"""

    def __init__(self, process_names: Optional[Callable[[], Iterable[str]]] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize detector

        Args:
            process_names: Returns running process names (defaults to procfs)
            clock: Monotonic time source used for the detection cache
        """
        self.process_names = process_names or _running_process_names
        self.clock = clock
        self._cached: Optional[bool] = None
        self._checked_at = 0.0

    def is_active(self, mode: str) -> bool:
        """
        Check streamer mode for a configured mode

        Args:
            mode: "disabled", "enabled" or "detect_obs"

        Returns:
            True if notifications should be treated as streaming
        """
        if mode == STREAMER_MODE_ENABLED:
            return True
        if mode == STREAMER_MODE_DETECT_OBS:
            return self._broadcaster_running()
        return False

    def _broadcaster_running(self) -> bool:
        now = self.clock()
        if self._cached is not None and now - self._checked_at < DETECTION_CACHE_SECONDS:
            return self._cached

        self._cached = any(name in BROADCAST_PROCESS_NAMES for name in self.process_names())
        self._checked_at = now
        return self._cached
