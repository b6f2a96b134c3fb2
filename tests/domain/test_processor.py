"""Tests for the request/response pipeline."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from kuma.domain.chat import ChatResponder
from kuma.domain.errors import DENIED_TEXT, FAILURE_TEXT, NOT_FOUND_TEXT, NotFound, PolicyDenied
from kuma.domain.models import Request, Response, SourceSystem, UserAuthority
from kuma.domain.processor import KumaProcessor
from kuma.domain.registry import CommandDescriptor, CommandRegistry


class MockChatLog:
    def __init__(self):
        self.requests = []
        self.responses = []
        self.exceptions = []

    async def log_request(self, request):
        self.requests.append(request)

    async def log_response(self, request, response):
        self.responses.append(response)

    def log_exception(self, exc, context):
        self.exceptions.append((exc, context))

    def recent_messages(self, source_system, channel_id, limit):
        return []


class MockListener:
    def __init__(self):
        self.processing = []
        self.responded = []

    async def on_processing(self, channel_id):
        self.processing.append(channel_id)

    async def on_responded(self, response):
        self.responded.append(response)


class CountingHandler:
    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    async def __call__(self, request):
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        if callable(self.result):
            return self.result(request)
        return self.result


def _request(message, **kw):
    kw.setdefault("channel_id", 100)
    return Request(username="alice", message=message, source_system=SourceSystem.DISCORD, **kw)


def _processor(descriptors=(), default=None, chat_log=None):
    return KumaProcessor(CommandRegistry(descriptors), default_handler=default, chat_log=chat_log)


class TestRouting:
    @pytest.mark.asyncio
    async def test_command_dispatched(self):
        handler = CountingHandler(lambda r: Response.reply(r, "Pong!"))
        p = _processor([CommandDescriptor(("ping",), handler)])
        resp = await p.process(_request("!PING"))
        assert resp.message == "Pong!"
        assert len(handler.calls) == 1

    @pytest.mark.asyncio
    async def test_unknown_command_goes_to_default_handler(self):
        default = CountingHandler(lambda r: Response.reply(r, "chat"))
        known = CountingHandler()
        p = _processor([CommandDescriptor(("ping",), known)], default=default)
        resp = await p.process(_request("!unknown thing"))
        assert resp.message == "chat"
        assert len(default.calls) == 1
        assert known.calls == []

    @pytest.mark.asyncio
    async def test_plain_text_without_default_is_silent(self):
        p = _processor()
        assert await p.process(_request("hello")) is None

    @pytest.mark.asyncio
    async def test_empty_response_dropped(self):
        listener = MockListener()
        p = _processor([CommandDescriptor(("quiet",), CountingHandler(lambda r: Response.reply(r, "")))])
        p.subscribe(listener)
        assert await p.process(_request("!quiet")) is None
        await p.drain()
        assert listener.responded == []

    @pytest.mark.asyncio
    async def test_routing_fields_forced_from_request(self):
        def wrong_route(r):
            return Response(source_system=SourceSystem.TWITCH, channel_id=999, message="hi")

        p = _processor([CommandDescriptor(("x",), CountingHandler(wrong_route))])
        resp = await p.process(_request("!x", channel_id=7))
        assert resp.source_system == SourceSystem.DISCORD
        assert resp.channel_id == 7

    @pytest.mark.asyncio
    async def test_custom_prefixes(self):
        handler = CountingHandler(lambda r: Response.reply(r, "ok"))
        p = KumaProcessor(CommandRegistry([CommandDescriptor(("ping",), handler)]), command_prefixes=(".",))
        assert (await p.process(_request(".ping"))).message == "ok"
        assert await p.process(_request("!ping")) is None


class TestPolicy:
    @pytest.mark.asyncio
    async def test_admin_command_denied_for_user(self):
        handler = CountingHandler(lambda r: Response.reply(r, "done"))
        listener = MockListener()
        p = _processor([CommandDescriptor(("danban",), handler, min_authority=UserAuthority.ADMINISTRATOR)])
        p.subscribe(listener)

        resp = await p.process(_request("!danban tag", authority=UserAuthority.USER))
        await p.drain()

        assert resp.message == DENIED_TEXT
        assert handler.calls == []
        assert listener.processing == []
        assert listener.responded == [resp]

    @pytest.mark.asyncio
    async def test_nsfw_command_denied_in_restricted_channel_even_for_admin(self):
        handler = CountingHandler(lambda r: Response.reply(r, "img"))
        p = _processor([CommandDescriptor(("dan",), handler, nsfw=True)])
        resp = await p.process(_request("!dan", authority=UserAuthority.ADMINISTRATOR, channel_is_nsfw=False))
        assert resp.message == DENIED_TEXT
        assert handler.calls == []

    @pytest.mark.asyncio
    async def test_nsfw_command_allowed_in_unrestricted_channel(self):
        handler = CountingHandler(lambda r: Response.reply(r, "img"))
        p = _processor([CommandDescriptor(("dan",), handler, nsfw=True)])
        resp = await p.process(_request("!dan", channel_is_nsfw=True))
        assert resp.message == "img"

    def test_check_policy_raises(self):
        d = CommandDescriptor(("danban",), CountingHandler(), min_authority=UserAuthority.MODERATOR)
        with pytest.raises(PolicyDenied):
            KumaProcessor.check_policy(_request("!danban"), d)
        KumaProcessor.check_policy(_request("!danban", authority=UserAuthority.MODERATOR), d)


class TestFaults:
    @pytest.mark.asyncio
    async def test_not_found_becomes_text(self):
        p = _processor([CommandDescriptor(("safe",), CountingHandler(error=NotFound()))])
        resp = await p.process(_request("!safe"))
        assert resp.message == NOT_FOUND_TEXT

    @pytest.mark.asyncio
    async def test_handler_fault_is_contained_and_logged(self):
        chat_log = MockChatLog()
        p = _processor(
            [CommandDescriptor(("boom",), CountingHandler(error=RuntimeError("kaboom")))],
            chat_log=chat_log,
        )
        resp = await p.process(_request("!boom"))
        await p.drain()

        assert resp.message == FAILURE_TEXT
        assert "kaboom" not in resp.message
        assert len(chat_log.exceptions) == 1
        exc, context = chat_log.exceptions[0]
        assert isinstance(exc, RuntimeError)
        assert "boom" in context

    @pytest.mark.asyncio
    async def test_failing_error_log_does_not_escape(self):
        chat_log = MockChatLog()

        def broken(exc, context):
            raise OSError("disk full")

        chat_log.log_exception = broken
        p = _processor([CommandDescriptor(("boom",), CountingHandler(error=ValueError()))], chat_log=chat_log)
        resp = await p.process(_request("!boom"))
        assert resp.message == FAILURE_TEXT


class TestEvents:
    @pytest.mark.asyncio
    async def test_processing_then_responded(self):
        listener = MockListener()
        chat_log = MockChatLog()
        p = _processor(
            [CommandDescriptor(("ping",), CountingHandler(lambda r: Response.reply(r, "Pong!")))],
            chat_log=chat_log,
        )
        p.subscribe(listener)

        req = _request("!ping", channel_id=55)
        resp = await p.process(req)
        await p.drain()

        assert listener.processing == [55]
        assert listener.responded == [resp]
        assert chat_log.requests == [req]
        assert chat_log.responses == [resp]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        listener = MockListener()
        p = _processor([CommandDescriptor(("ping",), CountingHandler(lambda r: Response.reply(r, "Pong!")))])
        p.subscribe(listener)
        p.unsubscribe(listener)
        await p.process(_request("!ping"))
        await p.drain()
        assert listener.responded == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_pipeline(self):
        class BrokenListener(MockListener):
            async def on_responded(self, response):
                raise RuntimeError("gone")

        good = MockListener()
        p = _processor([CommandDescriptor(("ping",), CountingHandler(lambda r: Response.reply(r, "Pong!")))])
        p.subscribe(BrokenListener())
        p.subscribe(good)
        resp = await p.process(_request("!ping"))
        await p.drain()
        assert good.responded == [resp]

    @pytest.mark.asyncio
    async def test_submit_is_fire_and_forget(self):
        listener = MockListener()
        p = _processor([CommandDescriptor(("ping",), CountingHandler(lambda r: Response.reply(r, "Pong!")))])
        p.subscribe(listener)
        assert p.submit(_request("!ping")) is None
        await p.drain()
        assert [r.message for r in listener.responded] == ["Pong!"]

    @pytest.mark.asyncio
    async def test_no_processing_signal_when_chat_stays_silent(self):
        listener = MockListener()
        p = KumaProcessor(CommandRegistry([]), default_handler=ChatResponder(None))
        p.subscribe(listener)

        resp = await p.process(_request("just chatting", channel_id=7))
        await p.drain()

        assert resp is None
        assert listener.processing == []
        assert listener.responded == []

    @pytest.mark.asyncio
    async def test_processing_signal_when_chat_is_addressed(self):
        llm = MagicMock()
        llm.execute = AsyncMock(return_value="kuma~")
        listener = MockListener()
        p = KumaProcessor(CommandRegistry([]), default_handler=ChatResponder(llm, bot_name="Kuma"))
        p.subscribe(listener)

        assert await p.process(_request("hello there", channel_id=7)) is None
        resp = await p.process(_request("kuma, hello", channel_id=8))
        await p.drain()

        assert resp.message == "kuma~"
        assert listener.processing == [8]
