"""Deduplicated random retrieval over a paginated search provider.

Pages through the provider, sampling each page without replacement, and
returns the first post that is not block-listed, has not been served to the
same namespace within the retention window, and has a direct file link.
"""

import random
import sys
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Set
from urllib.parse import urlparse

from kuma.domain.errors import MalformedInput, TransportFailure
from kuma.domain.models import ResponseImage, SearchItem, SourceSystem
from kuma.ports.outbound import BlockListPort, CachePort, SearchPort

PAGE_SIZE = 50
DEDUP_RETENTION = timedelta(days=1)
DEFAULT_BASE_URL = "https://danbooru.donmai.us"


def _log(msg: str):
    print(msg, file=sys.stderr)


def dedup_namespace(source_system: SourceSystem, channel_id: Optional[int]) -> str:
    channel = "" if channel_id is None else str(channel_id)
    return f"danbooru:{source_system.name.lower()}:{channel}"


def _title_case(text: str) -> str:
    """Capitalize each word, leaving all-caps words (acronyms) alone."""
    words = []
    for word in text.split(" "):
        if word.isupper():
            words.append(word)
        else:
            words.append(word[:1].upper() + word[1:].lower())
    return " ".join(words)


def _split_tags(tag_string: Optional[str]) -> List[str]:
    if not tag_string:
        return []
    return [t for t in tag_string.split(" ") if t]


def _character_name(tag: str) -> str:
    # "kuma_(kancolle)" -> "Kuma"
    return _title_case(tag.split("(")[0].replace("_", " ").strip())


def describe_item(item: SearchItem) -> str:
    """Human-readable caption: characters, series, and artist credit."""
    characters = _split_tags(item.tag_string_character)
    if len(characters) > 2:
        character = "Multiple"
    elif len(characters) == 2:
        character = f"{_character_name(characters[0])} and {_character_name(characters[1])}"
    elif characters:
        character = _character_name(characters[0])
    else:
        character = ""

    copyrights = _split_tags(item.tag_string_copyright)
    copyright_name = _title_case(copyrights[0].replace("_", " ")) if copyrights else ""

    artist = (item.tag_string_artist or "").replace("_", " ").strip()

    if character and copyright_name:
        description = f"{character} - {copyright_name}"
    elif copyright_name:
        description = f"Unknown - {copyright_name}"
    else:
        description = "Original"

    if artist:
        description += f"\nDrawn by {artist}"
    return description


def absolute_url(file_url: str, base_url: str = DEFAULT_BASE_URL) -> str:
    if urlparse(file_url).scheme in ("http", "https"):
        return file_url
    return f"{base_url.rstrip('/')}/{file_url.lstrip('/')}"


class DedupRandomRetriever:
    """Search/sample/filter engine shared by the content commands."""

    def __init__(
        self,
        search: SearchPort,
        cache: CachePort,
        block_list: BlockListPort,
        base_url: str = DEFAULT_BASE_URL,
        page_size: int = PAGE_SIZE,
        retention: timedelta = DEDUP_RETENTION,
        max_pages: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self._search = search
        self._cache = cache
        self._block_list = block_list
        self._base_url = base_url.rstrip("/")
        self._page_size = page_size
        self._retention = retention
        self._max_pages = max_pages
        self._rng = rng or random.Random()

    @property
    def referrer(self) -> str:
        return urlparse(self._base_url).netloc or self._base_url

    async def find(
        self,
        tags: Sequence[str],
        source_system: SourceSystem,
        channel_id: Optional[int],
    ) -> Optional[ResponseImage]:
        """Return one fresh image for ``tags`` in this namespace, or None."""
        blocked = await self._block_list.list_blocked_terms()
        if any(tag in blocked for tag in tags):
            _log(f"[retrieval] request contains a blocked tag: {list(tags)}")
            return None

        namespace = dedup_namespace(source_system, channel_id)
        served = set(await self._cache.keys_with_prefix(f"{namespace}:"))

        try:
            result = await self._scan(list(tags), namespace, served, blocked)
        except (TransportFailure, MalformedInput) as e:
            _log(f"[retrieval] search aborted: {e}")
            return None
        if result is None:
            return None

        await self._cache.set(
            f"{namespace}:{result.id}",
            str(int(datetime.now(timezone.utc).timestamp())),
            self._retention,
        )
        return ResponseImage(
            url=absolute_url(result.file_url, self._base_url),
            source=f"{self._base_url}/posts/{result.id}",
            description=describe_item(result),
            referrer=self.referrer,
        )

    async def _scan(
        self,
        tags: List[str],
        namespace: str,
        served: Set[str],
        blocked: Set[str],
    ) -> Optional[SearchItem]:
        page = 1
        while self._max_pages is None or page <= self._max_pages:
            items = list(await self._search.search(tags, page, self._page_size))
            if not items:
                return None

            while items:
                item = items.pop(self._rng.randrange(len(items)))
                if f"{namespace}:{item.id}" in served:
                    continue
                if not item.file_url:
                    continue
                if item.tag_string is None:
                    continue
                if blocked.intersection(_split_tags(item.tag_string)):
                    continue
                return item

            page += 1
        return None
