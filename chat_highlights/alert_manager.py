#!/usr/bin/env python3
"""
Alert Manager for Chat Highlights
Flags the window in the taskbar, or rings the terminal bell when headless
"""

import sys


class AlertManager:
    """Delivers highlight alerts"""

    def __init__(self, window=None, stream=None):
        """
        Initialize alert manager

        Args:
            window: Optional Gtk.Window to flag with the urgency hint
            stream: Terminal stream for the bell (defaults to sys.stdout)
        """
        self.window = window
        self.stream = stream
        self.alerts_sent = 0

    def is_focused(self) -> bool:
        """Check if the application window currently has focus"""
        if self.window is None:
            return False
        try:
            return bool(self.window.is_active())
        except Exception as e:
            print(f"Failed to query window focus: {e}")
            return False

    def send_alert(self) -> None:
        """Request the user's attention"""
        self.alerts_sent += 1

        if self.window is not None:
            try:
                if not self.window.is_active():
                    self.window.set_urgency_hint(True)
                return
            except Exception as e:
                print(f"Failed to set urgency hint: {e}")

        stream = self.stream or sys.stdout
        try:
            if stream.isatty():
                stream.write("\a")
                stream.flush()
        except (OSError, ValueError):
            pass

    def clear_alert(self) -> None:
        """Remove the urgency hint (call when the window gains focus)"""
        if self.window is not None:
            try:
                self.window.set_urgency_hint(False)
            except Exception as e:
                print(f"Failed to clear urgency hint: {e}")
