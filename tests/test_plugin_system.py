from unittest.mock import MagicMock

import chat_highlights.plugin_manager as plugin_manager
from chat_highlights.highlight_resolver import HighlightResult
from chat_highlights.models import ChatMessage, CurrentUser
from chat_highlights.plugin_manager import PluginManager


def _write_plugin(path, content):
    path.write_text(content, encoding="utf-8")


def _message(sender="alice", text="hello"):
    return ChatMessage(channel="somechannel", sender=sender, text=text)


def test_plugin_discovery_and_hooks(tmp_path):
    filter_plugin = tmp_path / "filter_plugin.py"
    setup_plugin = tmp_path / "setup_plugin.py"
    bad_plugin = tmp_path / "bad_plugin.py"

    _write_plugin(
        filter_plugin,
        "\n".join([
            "from chat_highlights.plugin_specs import hookimpl",
            "",
            "class Plugin:",
            "    @hookimpl",
            "    def filter_highlight(self, ctx, message, result):",
            "        if message.sender == 'nightbot':",
            "            return True",
        ])
    )

    _write_plugin(
        setup_plugin,
        "\n".join([
            "from chat_highlights.plugin_specs import hookimpl",
            "",
            "seen = {}",
            "",
            "class _Plugin:",
            "    @hookimpl",
            "    def on_message(self, ctx, message):",
            "        seen['message'] = message.text",
            "",
            "    @hookimpl",
            "    def on_highlight(self, ctx, message, result):",
            "        seen['highlight'] = (message.sender, result.color)",
            "",
            "def setup(ctx):",
            "    return _Plugin()",
        ])
    )

    _write_plugin(
        bad_plugin,
        "\n".join([
            "from chat_highlights.plugin_specs import hookimpl",
            "",
            "class Plugin:",
            "    @hookimpl",
            "    def on_message(self, ctx, message):",
            "        raise RuntimeError('boom')",
        ])
    )

    manager = PluginManager()
    manager.plugins_dir = tmp_path

    loaded = manager.discover_and_load_plugins()
    assert loaded == 3
    assert sorted(manager.get_loaded_plugins()) == ["bad_plugin", "filter_plugin", "setup_plugin"]

    result = HighlightResult(highlighted=True, color="#ff00ff00", alert=True)
    assert manager.filter_highlight(_message(sender="nightbot"), result) is True
    assert manager.filter_highlight(_message(), result) is False

    # Ensure on_message works and does not raise on plugin errors
    manager.call_message(_message(text="hi there"))
    manager.call_highlight(_message(), result)

    seen = manager.loaded_plugins["setup_plugin"]["module"].seen
    assert seen["message"] == "hi there"
    assert seen["highlight"] == ("alice", "#ff00ff00")


def test_broken_plugin_file_is_skipped(tmp_path, capsys):
    _write_plugin(tmp_path / "broken.py", "this is not python")
    _write_plugin(tmp_path / "_private.py", "raise SystemExit")

    manager = PluginManager()
    manager.plugins_dir = tmp_path

    assert manager.discover_and_load_plugins() == 0
    assert "Error executing plugin broken" in capsys.readouterr().out


def test_plugin_package_and_unload(tmp_path):
    package = tmp_path / "packaged"
    package.mkdir()
    _write_plugin(
        package / "__init__.py",
        "\n".join([
            "from chat_highlights.plugin_specs import hookimpl",
            "",
            "@hookimpl",
            "def filter_highlight(ctx, message, result):",
            "    return True",
        ])
    )

    manager = PluginManager()
    manager.plugins_dir = tmp_path

    assert manager.discover_and_load_plugins() == 1
    assert manager.filter_highlight(_message(), HighlightResult()) is True

    assert manager.unload_plugin("packaged") is True
    assert manager.unload_plugin("packaged") is False
    assert manager.filter_highlight(_message(), HighlightResult()) is False


def test_plugin_context(monkeypatch):
    monkeypatch.setattr(
        plugin_manager.GLib,
        "idle_add",
        lambda func, *args, **kwargs: func(*args)
    )

    config = MagicMock()
    config.get.side_effect = lambda key, default=None: {"channels": ["somechannel"]}.get(key, default)
    config.get_current_user.return_value = CurrentUser(name="me_user", is_anonymous=False)
    dispatcher = MagicMock()
    alerts = MagicMock()

    manager = PluginManager()
    manager.set_managers(config, dispatcher, alerts)
    ctx = manager.ctx

    ctx.play_sound("file:///ping.wav")
    ctx.send_alert()

    dispatcher.play_sound.assert_called_once_with("file:///ping.wav")
    alerts.send_alert.assert_called_once_with()
    assert ctx.get_config("channels") == ["somechannel"]
    assert ctx.get_config("oauth_token", "hidden") == "hidden"
    assert ctx.get_current_user() == "me_user"

    config.get_current_user.return_value = CurrentUser(name="justinfan123")
    assert ctx.get_current_user() is None
