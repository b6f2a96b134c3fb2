"""Danbooru client — implements SearchPort over the posts.json API."""

import asyncio
import sys
from typing import List, Optional, Sequence

import aiohttp

from kuma.config import DanbooruConfig
from kuma.domain.errors import MalformedInput, TransportFailure
from kuma.domain.models import SearchItem


def _log(msg: str):
    print(msg, file=sys.stderr)


def _optional_str(value) -> Optional[str]:
    return value if isinstance(value, str) else None


def parse_post(raw) -> SearchItem:
    if not isinstance(raw, dict):
        raise MalformedInput(f"post is not an object: {type(raw).__name__}")
    post_id = raw.get("id")
    if not isinstance(post_id, int) or isinstance(post_id, bool):
        raise MalformedInput(f"post without a numeric id: {post_id!r}")
    return SearchItem(
        id=post_id,
        file_url=_optional_str(raw.get("file_url")),
        tag_string=_optional_str(raw.get("tag_string")),
        tag_string_character=_optional_str(raw.get("tag_string_character")),
        tag_string_copyright=_optional_str(raw.get("tag_string_copyright")),
        tag_string_artist=_optional_str(raw.get("tag_string_artist")),
    )


class DanbooruClient:
    """Search Danbooru posts by tag, one page at a time."""

    def __init__(self, config: Optional[DanbooruConfig] = None):
        self._config = config or DanbooruConfig()

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    @property
    def posts_url(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/posts.json"

    async def search(self, tags: Sequence[str], page: int, limit: int) -> List[SearchItem]:
        """Fetch one page of posts.

        Raises TransportFailure on any non-2xx status, timeout or connection
        error, and MalformedInput when the body is not a list of posts.
        """
        params = {"limit": str(limit), "page": str(page)}
        if tags:
            params["tags"] = " ".join(tags)

        auth = None
        if self._config.is_configured:
            auth = aiohttp.BasicAuth(self._config.user, self._config.api_key)
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout_seconds)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.posts_url, params=params, auth=auth) as resp:
                    if resp.status < 200 or resp.status >= 300:
                        body = await resp.text()
                        raise TransportFailure(f"HTTP {resp.status}: {body[:200]}")
                    try:
                        data = await resp.json(content_type=None)
                    except ValueError as e:
                        raise MalformedInput(f"response is not JSON: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportFailure(f"timed out after {self._config.request_timeout_seconds}s") from e
        except aiohttp.ClientError as e:
            raise TransportFailure(str(e)) from e

        if not isinstance(data, list):
            raise MalformedInput(f"expected a list of posts, got {type(data).__name__}")
        posts = [parse_post(raw) for raw in data]
        _log(f"[danbooru] page {page} for {list(tags)}: {len(posts)} post(s)")
        return posts
