from chat_highlights.highlight_resolver import HighlightResolver, HighlightResult
from chat_highlights.highlight_rules import (
    HighlightBadge,
    HighlightBlacklistUser,
    HighlightPhrase,
    HighlightRuleSet,
)
from chat_highlights.models import ChatMessage, CurrentUser
from chat_highlights.settings import HighlightSettings
from chat_highlights.sound_manager import DEFAULT_HIGHLIGHT_SOUND_URL


FALLBACK = "file:///sounds/fallback.wav"

SUB = "#sub"
WHISPER = "#whisper"
SELF = "#self"


def _settings(users=(), phrases=(), badges=(), blacklist=(), **overrides):
    values = dict(
        sub_highlight_color=SUB,
        whisper_highlight_color=WHISPER,
        self_highlight_color=SELF,
        rules=HighlightRuleSet(
            users=tuple(users),
            phrases=tuple(phrases),
            badges=tuple(badges),
            blacklist=tuple(blacklist),
        ),
        current_user=CurrentUser(name="me_user", is_anonymous=False),
    )
    values.update(overrides)
    return HighlightSettings(**values)


def _resolver(settings):
    return HighlightResolver(settings, fallback_sound=lambda s: FALLBACK)


def _message(sender="alice", text="hello", **kwargs):
    return ChatMessage(channel="somechannel", sender=sender, text=text, **kwargs)


def _phrase(pattern, color="#phrase", alert=False, sound=False, sound_url="", mentions=False):
    return HighlightPhrase(pattern=pattern, color=color, has_alert=alert, has_sound=sound,
                           sound_url=sound_url, show_in_mentions=mentions)


# -- Plain messages -----------------------------------------------------------


def test_plain_message_is_not_highlighted():
    result = _resolver(_settings()).resolve(_message())

    assert result == HighlightResult()


def test_resolve_does_not_touch_message():
    message = _message(text="ping me_user")
    _resolver(_settings()).resolve(message)

    assert message.highlighted is False
    assert message.highlight_color is None


def test_resolve_message_applies_result():
    message = _message(text="ping me_user")
    result = _resolver(_settings()).resolve_message(message)

    assert result.highlighted is True
    assert message.highlighted is True
    assert message.highlight_color == SELF
    assert message.show_in_mentions is True


def test_resolving_twice_gives_identical_results():
    settings = _settings(
        phrases=[_phrase("hello", alert=True, sound=True)],
        badges=[HighlightBadge("moderator", color="#mod", has_alert=True)],
    )
    resolver = _resolver(settings)
    message = _message(text="hello there", tags={"badges": "moderator/1"})

    assert resolver.resolve(message) == resolver.resolve(message)


# -- Subscription category ----------------------------------------------------


def test_subscription_without_sound():
    settings = _settings(enable_sub_highlight_sound=False)
    result = _resolver(settings).resolve(_message(is_subscription=True))

    assert result.highlighted is True
    assert result.color == SUB
    assert result.alert is True
    assert result.sound is False
    assert result.sound_url is None


def test_subscription_uses_custom_sound():
    settings = _settings(sub_highlight_sound_url="https://example.com/sub.ogg")
    result = _resolver(settings).resolve(_message(is_subscription=True))

    assert result.sound is True
    assert result.sound_url == "https://example.com/sub.ogg"


def test_subscription_falls_back_to_default_sound():
    result = _resolver(_settings()).resolve(_message(is_subscription=True))

    assert result.sound_url == FALLBACK


def test_subscription_disabled_does_nothing():
    settings = _settings(enable_sub_highlight=False)
    result = _resolver(settings).resolve(_message(is_subscription=True))

    assert result == HighlightResult()


def test_subscription_color_is_not_overridden():
    settings = _settings(
        users=[_phrase("alice", color="#user")],
        phrases=[_phrase("hype", color="#phrase")],
        badges=[HighlightBadge("subscriber", color="#badge")],
    )
    message = _message(text="hype", is_subscription=True, tags={"badges": "subscriber/6"})
    result = _resolver(settings).resolve(message)

    assert result.highlighted is True
    assert result.color == SUB


def test_subscription_color_unprotected_when_sub_highlight_disabled():
    settings = _settings(enable_sub_highlight=False, phrases=[_phrase("hype", color="#phrase")])
    result = _resolver(settings).resolve(_message(text="hype", is_subscription=True))

    assert result.color == "#phrase"


def test_subscription_sound_wins_over_later_rules():
    settings = _settings(
        sub_highlight_sound_url="file:///sub.wav",
        phrases=[_phrase("hype", sound=True, sound_url="file:///phrase.wav")],
    )
    result = _resolver(settings).resolve(_message(text="hype", is_subscription=True))

    assert result.sound_url == "file:///sub.wav"


# -- Blacklist ----------------------------------------------------------------


def test_blacklisted_user_skips_all_rules():
    settings = _settings(
        users=[_phrase("spammer", alert=True, sound=True)],
        phrases=[_phrase("me_user", alert=True, sound=True)],
        badges=[HighlightBadge("moderator", has_alert=True, has_sound=True)],
        blacklist=[HighlightBlacklistUser("Spammer")],
    )
    message = _message(sender="spammer", text="me_user", is_whisper=True,
                       tags={"badges": "moderator/1"})
    result = _resolver(settings).resolve(message)

    assert result.highlighted is False
    assert result.color is None
    assert result.alert is False
    assert result.sound is False
    assert result.stopped_by == "blacklist"


def test_blacklist_keeps_subscription_highlight():
    settings = _settings(
        phrases=[_phrase("hype", color="#phrase")],
        blacklist=[HighlightBlacklistUser("alice")],
    )
    result = _resolver(settings).resolve(_message(text="hype", is_subscription=True))

    assert result.highlighted is True
    assert result.color == SUB
    assert result.stopped_by == "blacklist"


def test_blacklist_regex_entry():
    settings = _settings(
        phrases=[_phrase("hello")],
        blacklist=[HighlightBlacklistUser(r"^bot_", is_regex=True)],
    )
    resolver = _resolver(settings)

    assert resolver.resolve(_message(sender="bot_nine")).highlighted is False
    assert resolver.resolve(_message(sender="robot_nine")).highlighted is True


# -- Whisper category ---------------------------------------------------------


def test_whisper_sets_color_and_notifications():
    settings = _settings(enable_whisper_highlight_sound=True)
    result = _resolver(settings).resolve(_message(is_whisper=True))

    assert result.color == WHISPER
    assert result.alert is True
    assert result.sound_url == FALLBACK
    # Whisper color alone does not mark the message highlighted
    assert result.highlighted is False


def test_phrase_overrides_whisper_color_but_not_sound():
    settings = _settings(
        enable_whisper_highlight_sound=True,
        whisper_highlight_sound_url="file:///whisper.wav",
        phrases=[_phrase("secret", color="#phrase", sound=True, sound_url="file:///phrase.wav")],
    )
    result = _resolver(settings).resolve(_message(text="a secret", is_whisper=True))

    assert result.highlighted is True
    assert result.color == "#phrase"
    assert result.sound_url == "file:///whisper.wav"


def test_whisper_disabled():
    settings = _settings(enable_whisper_highlight=False)
    result = _resolver(settings).resolve(_message(is_whisper=True))

    assert result == HighlightResult()


# -- Per-user rules -----------------------------------------------------------


def test_user_rule_highlights_sender():
    settings = _settings(users=[_phrase("alice", color="#user", mentions=True)])
    result = _resolver(settings).resolve(_message(sender="alice"))

    assert result.highlighted is True
    assert result.color == "#user"
    assert result.show_in_mentions is True


def test_user_rule_with_alert_and_sound_skips_phrases_and_badges():
    settings = _settings(
        users=[_phrase("alice", color="#user", alert=True, sound=True)],
        phrases=[_phrase("hello", color="#phrase", mentions=True)],
        badges=[HighlightBadge("moderator", color="#badge")],
    )
    message = _message(sender="alice", text="hello", tags={"badges": "moderator/1"})
    result = _resolver(settings).resolve(message)

    assert result.color == "#user"
    assert result.show_in_mentions is False
    assert result.stopped_by == "users"


def test_user_rules_short_circuit_after_first_satisfying_rule():
    settings = _settings(users=[
        _phrase("alice", color="#first", alert=True, sound=True, sound_url="file:///first.wav"),
        _phrase("alice", color="#second", mentions=True),
    ])
    result = _resolver(settings).resolve(_message(sender="alice"))

    assert result.color == "#first"
    assert result.show_in_mentions is False


def test_user_rule_without_sound_lets_phrases_apply():
    settings = _settings(
        users=[_phrase("alice", color="#user", alert=True)],
        phrases=[_phrase("hello", color="#phrase", sound=True)],
    )
    result = _resolver(settings).resolve(_message(sender="alice", text="hello"))

    assert result.color == "#phrase"
    assert result.alert is True
    assert result.sound_url == FALLBACK
    assert result.stopped_by is None


def test_user_rules_keep_first_sound_url():
    settings = _settings(users=[
        _phrase("alice", sound=True, sound_url="file:///first.wav"),
        _phrase("alice", sound=True, sound_url="file:///second.wav"),
    ])
    result = _resolver(settings).resolve(_message(sender="alice"))

    assert result.sound_url == "file:///first.wav"


def test_whisper_alert_and_sound_make_user_rule_stop_resolution():
    settings = _settings(
        enable_whisper_highlight_sound=True,
        users=[_phrase("alice", color="#user")],
        phrases=[_phrase("hello", color="#phrase")],
    )
    result = _resolver(settings).resolve(_message(sender="alice", text="hello", is_whisper=True))

    assert result.color == "#user"
    assert result.stopped_by == "users"


# -- Self messages ------------------------------------------------------------


def test_own_messages_never_match_phrases_or_badges():
    settings = _settings(
        phrases=[_phrase("hello", alert=True)],
        badges=[HighlightBadge("broadcaster", has_alert=True)],
    )
    message = _message(sender="Me_User", text="hello me_user", tags={"badges": "broadcaster/1"})
    result = _resolver(settings).resolve(message)

    assert result.highlighted is False
    assert result.alert is False
    assert result.stopped_by == "self"


def test_own_message_keeps_user_rule_highlight():
    settings = _settings(
        users=[_phrase("me_user", color="#user")],
        phrases=[_phrase("hello", color="#phrase")],
    )
    result = _resolver(settings).resolve(_message(sender="me_user", text="hello"))

    assert result.highlighted is True
    assert result.color == "#user"
    assert result.stopped_by == "self"


# -- Phrase rules -------------------------------------------------------------


def test_self_mention_rule_is_appended():
    settings = _settings(phrases=[_phrase("hello")])
    phrases = _resolver(settings).effective_phrases()

    assert [p.pattern for p in phrases] == ["hello", "me_user"]
    assert phrases[-1].color == SELF


def test_self_mention_matches_whole_word_only():
    resolver = _resolver(_settings())

    assert resolver.resolve(_message(text="hi ME_USER!")).highlighted is True
    assert resolver.resolve(_message(text="hi me_username")).highlighted is False


def test_self_mention_disabled_for_anonymous_user():
    settings = _settings(current_user=CurrentUser(name="justinfan123", is_anonymous=True))
    resolver = _resolver(settings)

    assert resolver.effective_phrases() == []
    assert resolver.resolve(_message(text="justinfan123")).highlighted is False


def test_self_mention_disabled_without_name():
    settings = _settings(current_user=CurrentUser(name="", is_anonymous=False))

    assert _resolver(settings).effective_phrases() == []


def test_self_mention_disabled_by_setting():
    settings = _settings(enable_self_highlight=False)

    assert _resolver(settings).resolve(_message(text="me_user")).highlighted is False


def test_later_phrase_overrides_color():
    settings = _settings(phrases=[
        _phrase("hello", color="#first"),
        _phrase("world", color="#second"),
    ])
    result = _resolver(settings).resolve(_message(text="hello world"))

    assert result.color == "#second"


def test_phrase_loop_stops_once_alert_and_sound_are_set():
    settings = _settings(phrases=[
        _phrase("hello", color="#first", alert=True, sound=True),
        _phrase("world", color="#second", mentions=True),
    ])
    result = _resolver(settings).resolve(_message(text="hello world"))

    assert result.color == "#first"
    assert result.show_in_mentions is False


def test_badges_still_apply_after_phrase_break():
    settings = _settings(
        phrases=[_phrase("hello", color="#phrase", alert=True, sound=True)],
        badges=[HighlightBadge("vip", color="#badge")],
    )
    result = _resolver(settings).resolve(_message(text="hello", tags={"badges": "vip/1"}))

    assert result.color == "#badge"
    assert result.stopped_by is None


def test_invalid_regex_phrase_never_matches():
    settings = _settings(phrases=[HighlightPhrase(pattern="([", is_regex=True)])
    result = _resolver(settings).resolve(_message(text="(["))

    assert result.highlighted is False


# -- Badge rules --------------------------------------------------------------


def test_badge_rule_any_version():
    settings = _settings(badges=[
        HighlightBadge("subscriber", color="#sub-badge"),
        HighlightBadge("bits", "1000", color="#bits"),
    ])
    result = _resolver(settings).resolve(_message(tags={"badges": "subscriber/12,bits/100"}))

    assert result.highlighted is True
    assert result.color == "#sub-badge"


def test_badge_rule_version_must_match():
    settings = _settings(badges=[HighlightBadge("bits", "1000", color="#bits")])
    result = _resolver(settings).resolve(_message(tags={"badges": "subscriber/12,bits/100"}))

    assert result.highlighted is False


def test_badge_color_only_taken_from_first_match():
    settings = _settings(badges=[
        HighlightBadge("moderator", color="#mod"),
        HighlightBadge("vip", color="#vip", has_alert=True, has_sound=True,
                       sound_url="file:///vip.wav"),
    ])
    result = _resolver(settings).resolve(_message(tags={"badges": "vip/1,moderator/1"}))

    assert result.color == "#mod"
    assert result.alert is True
    assert result.sound_url == "file:///vip.wav"


def test_badge_sound_does_not_replace_phrase_sound():
    settings = _settings(
        phrases=[_phrase("hello", sound=True, sound_url="file:///phrase.wav")],
        badges=[HighlightBadge("vip", has_sound=True, sound_url="file:///vip.wav")],
    )
    result = _resolver(settings).resolve(_message(text="hello", tags={"badges": "vip/1"}))

    assert result.sound_url == "file:///phrase.wav"


def test_malformed_badges_are_ignored():
    settings = _settings(badges=[HighlightBadge("subscriber", color="#sub-badge")])
    result = _resolver(settings).resolve(_message(tags={"badges": "malformed,subscriber/12"}))

    assert result.color == "#sub-badge"


def test_valueless_badges_tag():
    settings = _settings(badges=[HighlightBadge("subscriber")])
    result = _resolver(settings).resolve(_message(tags={"badges": True}))

    assert result.highlighted is False


# -- Fallback sound -----------------------------------------------------------


def test_default_fallback_sound_is_bundled_ping():
    settings = _settings(phrases=[_phrase("hello", sound=True)])
    result = HighlightResolver(settings).resolve(_message(text="hello"))

    assert result.sound_url == DEFAULT_HIGHLIGHT_SOUND_URL


def test_custom_sound_path_is_turned_into_url(tmp_path):
    sound = tmp_path / "mine.wav"
    sound.write_bytes(b"RIFF")
    settings = _settings(phrases=[_phrase("hello", sound=True, sound_url=str(sound))])
    result = _resolver(settings).resolve(_message(text="hello"))

    assert result.sound_url == sound.as_uri()


# -- apply() ------------------------------------------------------------------


def test_apply_never_clears_highlight():
    message = _message()
    message.highlighted = True
    message.highlight_color = "#existing"

    HighlightResolver.apply(message, HighlightResult())

    assert message.highlighted is True
    assert message.highlight_color == "#existing"


def test_unparsable_sound_url_falls_back(capsys):
    settings = _settings(phrases=[_phrase("hello", sound=True, sound_url="http://[broken")])
    result = _resolver(settings).resolve(_message(text="hello"))

    assert result.highlighted is True
    assert result.sound is True
    assert result.sound_url == FALLBACK
    assert "Ignoring invalid sound URL" in capsys.readouterr().out


def test_unparsable_sub_sound_url_falls_back():
    settings = _settings(sub_highlight_sound_url="https://[::1")
    result = _resolver(settings).resolve(_message(is_subscription=True))

    assert result.sound_url == FALLBACK
