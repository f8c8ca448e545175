"""
Plugin Manager for Chat Highlights

Handles plugin discovery, loading, and hook execution.
"""

import os
import sys
import importlib.util
from pathlib import Path
from typing import Optional, Dict, Any, List
from gi.repository import GLib

try:
    import pluggy
    PLUGGY_AVAILABLE = True
except ImportError:
    PLUGGY_AVAILABLE = False
    print("Warning: pluggy not available. Plugin support will be disabled.")

from .plugin_specs import ChatHighlightsHookSpec


class PluginContext:
    """
    Context object passed to plugins providing safe access to application APIs.
    """

    def __init__(self, plugin_manager: 'PluginManager'):
        self._pm = plugin_manager

    def play_sound(self, url: str) -> None:
        """Play a sound through the highlight player.

        Args:
            url: Sound URL (file://, https://, ...)
        """
        if not self._pm.dispatcher:
            return

        def do_play():
            self._pm.dispatcher.play_sound(url)
            return False

        GLib.idle_add(do_play)

    def send_alert(self) -> None:
        """Flag the application for the user's attention."""
        if not self._pm.alert_manager:
            return

        def do_alert():
            self._pm.alert_manager.send_alert()
            return False

        GLib.idle_add(do_alert)

    def get_config(self, key: str, default: Any = None) -> Any:
        """Get a top-level configuration value.

        The OAuth token is never handed out.

        Args:
            key: Configuration key
            default: Default if not set

        Returns:
            Configuration value
        """
        if not self._pm.config_manager or key == "oauth_token":
            return default
        return self._pm.config_manager.get(key, default)

    def get_current_user(self) -> Optional[str]:
        """Get the logged-in user name, None when anonymous."""
        if not self._pm.config_manager:
            return None
        user = self._pm.config_manager.get_current_user()
        return None if user.is_anonymous else user.name


class PluginManager:
    """
    Manages plugin discovery, loading, and hook execution.
    """

    def __init__(self):
        self.plugins_dir: Optional[Path] = None
        self.loaded_plugins: Dict[str, Any] = {}
        self.pm: Optional[pluggy.PluginManager] = None
        self.ctx: Optional[PluginContext] = None

        # References to application components (set via set_managers)
        self.config_manager = None
        self.dispatcher = None
        self.alert_manager = None

        if PLUGGY_AVAILABLE:
            self.pm = pluggy.PluginManager("chat_highlights")
            self.pm.add_hookspecs(ChatHighlightsHookSpec)
            self.ctx = PluginContext(self)

    def set_managers(self, config_manager, dispatcher, alert_manager) -> None:
        """Set references to application managers.

        Args:
            config_manager: ConfigManager instance
            dispatcher: NotificationDispatcher instance
            alert_manager: AlertManager instance
        """
        self.config_manager = config_manager
        self.dispatcher = dispatcher
        self.alert_manager = alert_manager

        if config_manager:
            config_dir = Path(os.path.expanduser("~/.config/chat-highlights"))
            self.plugins_dir = config_dir / "plugins"

    def discover_and_load_plugins(self) -> int:
        """Discover and load all plugins from the plugins directory.

        Returns:
            Number of plugins loaded
        """
        if not PLUGGY_AVAILABLE or not self.pm:
            return 0

        if not self.plugins_dir:
            return 0

        self.plugins_dir.mkdir(parents=True, exist_ok=True)

        loaded = 0

        for plugin_file in sorted(self.plugins_dir.glob("*.py")):
            if plugin_file.name.startswith("_"):
                continue

            try:
                if self._load_plugin_file(plugin_file):
                    loaded += 1
            except Exception as e:
                print(f"Error loading plugin {plugin_file.name}: {e}")

        # Plugin packages (directories with __init__.py)
        for plugin_dir in sorted(self.plugins_dir.iterdir()):
            if plugin_dir.is_dir() and (plugin_dir / "__init__.py").exists():
                if plugin_dir.name.startswith("_"):
                    continue

                try:
                    if self._load_plugin_file(plugin_dir / "__init__.py", plugin_dir.name):
                        loaded += 1
                except Exception as e:
                    print(f"Error loading plugin package {plugin_dir.name}: {e}")

        return loaded

    def _load_plugin_file(self, plugin_file: Path, plugin_name: Optional[str] = None) -> bool:
        """Load a single plugin file.

        Args:
            plugin_file: Path to plugin .py file
            plugin_name: Name to register under (defaults to the file stem)

        Returns:
            True if loaded successfully
        """
        plugin_name = plugin_name or plugin_file.stem

        if plugin_name in self.loaded_plugins:
            print(f"Plugin {plugin_name} already loaded")
            return False

        spec = importlib.util.spec_from_file_location(
            f"chat_highlights_plugin_{plugin_name}",
            plugin_file
        )
        if spec is None or spec.loader is None:
            return False

        module = importlib.util.module_from_spec(spec)
        sys.modules[spec.name] = module

        try:
            spec.loader.exec_module(module)
        except Exception as e:
            print(f"Error executing plugin {plugin_name}: {e}")
            del sys.modules[spec.name]
            return False

        # A Plugin class, a setup() factory, or the module itself
        if hasattr(module, 'Plugin'):
            try:
                plugin_instance = module.Plugin()
            except Exception as e:
                print(f"Error instantiating Plugin class in {plugin_name}: {e}")
                del sys.modules[spec.name]
                return False
        elif hasattr(module, 'setup'):
            try:
                plugin_instance = module.setup(self.ctx)
            except Exception as e:
                print(f"Error in setup() for {plugin_name}: {e}")
                del sys.modules[spec.name]
                return False
        else:
            plugin_instance = module

        self.pm.register(plugin_instance, name=plugin_name)
        self.loaded_plugins[plugin_name] = {
            'module': module,
            'instance': plugin_instance,
            'file': plugin_file
        }

        print(f"Loaded plugin: {plugin_name}")
        return True

    def unload_plugin(self, plugin_name: str) -> bool:
        """Unload a plugin.

        Args:
            plugin_name: Name of plugin to unload

        Returns:
            True if unloaded successfully
        """
        if not PLUGGY_AVAILABLE or not self.pm:
            return False

        if plugin_name not in self.loaded_plugins:
            return False

        self.pm.unregister(name=plugin_name)

        module_name = f"chat_highlights_plugin_{plugin_name}"
        if module_name in sys.modules:
            del sys.modules[module_name]

        del self.loaded_plugins[plugin_name]
        print(f"Unloaded plugin: {plugin_name}")
        return True

    def get_loaded_plugins(self) -> List[str]:
        """Get list of loaded plugin names."""
        return list(self.loaded_plugins.keys())

    # =========================================================================
    # Hook Callers
    # =========================================================================

    def call_startup(self) -> None:
        """Call on_startup hooks."""
        if self.pm and self.ctx:
            try:
                self.pm.hook.on_startup(ctx=self.ctx)
            except Exception as e:
                print(f"Plugin error in on_startup: {e}")

    def call_shutdown(self) -> None:
        """Call on_shutdown hooks."""
        if self.pm and self.ctx:
            try:
                self.pm.hook.on_shutdown(ctx=self.ctx)
            except Exception as e:
                print(f"Plugin error in on_shutdown: {e}")

    def call_message(self, message) -> None:
        """Call on_message hooks."""
        if self.pm and self.ctx:
            try:
                self.pm.hook.on_message(ctx=self.ctx, message=message)
            except Exception as e:
                print(f"Plugin error in on_message: {e}")

    def call_highlight(self, message, result) -> None:
        """Call on_highlight hooks."""
        if self.pm and self.ctx:
            try:
                self.pm.hook.on_highlight(ctx=self.ctx, message=message, result=result)
            except Exception as e:
                print(f"Plugin error in on_highlight: {e}")

    def filter_highlight(self, message, result) -> bool:
        """Call filter_highlight hooks.

        Returns:
            True if a plugin suppressed the notification
        """
        if self.pm and self.ctx:
            try:
                return self.pm.hook.filter_highlight(
                    ctx=self.ctx, message=message, result=result
                ) is True
            except Exception as e:
                print(f"Plugin error in filter_highlight: {e}")
        return False
