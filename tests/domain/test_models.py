"""Tests for domain models and command parsing."""

from kuma.domain.models import (
    Request,
    Response,
    ResponseImage,
    SourceSystem,
    UserAuthority,
    parse_command,
)


def _request(message, **kw):
    return Request(username="alice", message=message, source_system=SourceSystem.DISCORD, **kw)


class TestParseCommand:
    def test_prefixed(self):
        assert parse_command("!dan kuma_(kancolle) solo") == ("dan", ("kuma_(kancolle)", "solo"))

    def test_slash_prefix_and_case(self):
        assert parse_command("/PING") == ("ping", ())

    def test_bot_suffix_dropped(self):
        assert parse_command("/help@KumaKaiNiBot") == ("help", ())

    def test_plain_text_is_not_a_command(self):
        assert parse_command("hello kuma") == ("", ())

    def test_empty(self):
        assert parse_command("") == ("", ())
        assert parse_command("   ") == ("", ())
        assert parse_command(None) == ("", ())

    def test_custom_prefixes(self):
        assert parse_command(".ping", prefixes=(".",)) == ("ping", ())
        assert parse_command("!ping", prefixes=(".",)) == ("", ())


class TestRequest:
    def test_defaults(self):
        r = _request("hi")
        assert r.authority == UserAuthority.USER
        assert r.channel_is_private is False
        assert r.channel_is_nsfw is False
        assert r.timestamp.tzinfo is not None

    def test_args_follow_the_command_token(self):
        r = _request("!Safe  kuma   rain")
        assert r.command_args == ("kuma", "rain")
        assert _request(".safe kuma").command_args == ("kuma",)

    def test_command_name_left_to_processor_prefixes(self):
        # Only the processor knows the configured prefixes
        assert not hasattr(_request("!safe"), "command")

    def test_args_of_plain_message(self):
        assert _request("just talking").command_args == ("talking",)


class TestResponse:
    def test_reply_copies_routing(self):
        req = _request("!ping", channel_id=42)
        resp = Response.reply(req, "Pong!")
        assert resp.source_system == SourceSystem.DISCORD
        assert resp.channel_id == 42
        assert resp.message == "Pong!"

    def test_is_empty(self):
        req = _request("x")
        assert Response.reply(req).is_empty
        assert Response.reply(req, "").is_empty
        image = ResponseImage(url="u", source="s", description="d", referrer="r")
        assert not Response.reply(req, image=image).is_empty

    def test_authority_is_ordered(self):
        assert UserAuthority.USER < UserAuthority.MODERATOR < UserAuthority.ADMINISTRATOR
