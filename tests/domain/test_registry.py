"""Tests for the command registry."""

import pytest

from kuma.domain.models import Request, SourceSystem, UserAuthority
from kuma.domain.registry import CommandDescriptor, CommandRegistry


async def _noop(request):
    return None


def _descriptor(*names, **kw):
    return CommandDescriptor(tuple(names), _noop, **kw)


class TestCommandRegistry:
    def test_lookup_is_case_insensitive(self):
        d = _descriptor("Dan")
        registry = CommandRegistry([d])
        assert registry.lookup("dan") is d
        assert registry.lookup("DAN") is d
        assert "dAn" in registry

    def test_aliases_share_descriptor(self):
        d = _descriptor("safe", "sfw")
        registry = CommandRegistry([d])
        assert registry.lookup("sfw") is registry.lookup("safe")
        assert len(registry) == 1
        assert registry.names() == ["safe", "sfw"]

    def test_unknown_name_falls_through(self):
        registry = CommandRegistry([_descriptor("ping")])
        assert registry.lookup("pong") is None
        assert registry.lookup("") is None

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            CommandRegistry([_descriptor("ping"), _descriptor("PING")])

    def test_alias_colliding_with_name_rejected(self):
        with pytest.raises(ValueError):
            CommandRegistry([_descriptor("lewd", "nsfw"), _descriptor("nsfw")])

    @pytest.mark.parametrize("names", [(), ("",), ("two words",)])
    def test_invalid_names_rejected(self, names):
        with pytest.raises(ValueError):
            CommandRegistry([CommandDescriptor(names, _noop)])

    def test_catalog_is_read_only(self):
        registry = CommandRegistry([_descriptor("ping")])
        with pytest.raises(TypeError):
            registry._table["pong"] = _descriptor("pong")


class TestPermits:
    def _request(self, authority=UserAuthority.USER, nsfw=False):
        return Request(
            username="bob", message="!x", source_system=SourceSystem.DISCORD,
            authority=authority, channel_is_nsfw=nsfw,
        )

    def test_authority(self):
        d = _descriptor("danban", min_authority=UserAuthority.ADMINISTRATOR)
        assert not d.permits(self._request(UserAuthority.MODERATOR))
        assert d.permits(self._request(UserAuthority.ADMINISTRATOR))

    def test_nsfw_independent_of_authority(self):
        d = _descriptor("dan", nsfw=True)
        assert not d.permits(self._request(UserAuthority.ADMINISTRATOR, nsfw=False))
        assert d.permits(self._request(UserAuthority.USER, nsfw=True))
