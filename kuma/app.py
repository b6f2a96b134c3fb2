"""Wiring shared by the consumer process and the Discord gateway."""

import sys
from dataclasses import dataclass
from datetime import timedelta

import redis.asyncio as aioredis

from kuma.adapters.cache.redis_cache import RedisCache
from kuma.adapters.llm.executor import create_executor
from kuma.adapters.search.danbooru import DanbooruClient
from kuma.adapters.storage.json_store import JsonLineStorage
from kuma.adapters.storage.redis_block_list import RedisBlockList
from kuma.config import AppConfig
from kuma.domain.chat import ChatResponder
from kuma.domain.commands import build_registry
from kuma.domain.processor import KumaProcessor
from kuma.domain.retrieval import DEDUP_RETENTION, DedupRandomRetriever
from kuma.infrastructure.chat_log import ChatLogger


def _log(msg: str):
    print(msg, file=sys.stderr)


@dataclass
class KumaApp:
    config: AppConfig
    redis: object
    processor: KumaProcessor
    chat_log: ChatLogger

    async def close(self):
        await self.processor.drain()
        await self.redis.aclose()


def create_redis(config: AppConfig):
    return aioredis.Redis.from_url(config.redis.url, decode_responses=True)


def build_app(config: AppConfig, redis=None, retention: timedelta = DEDUP_RETENTION) -> KumaApp:
    """Assemble the processor and its collaborators from ``config``."""
    redis = redis if redis is not None else create_redis(config)

    chat_log = ChatLogger(
        JsonLineStorage(config.storage_dir, max_records=config.log_max_records),
        bot_name=config.chat.bot_name,
    )

    danbooru = DanbooruClient(config.danbooru)
    if not danbooru.is_configured:
        _log("[app] DANBOORU_USER / DANBOORU_API_KEY not set, searching anonymously")
    block_list = RedisBlockList(redis, key=f"{config.redis.stream_prefix}:danbooru:blocklist")
    retriever = DedupRandomRetriever(
        search=danbooru,
        cache=RedisCache(redis),
        block_list=block_list,
        base_url=config.danbooru.base_url,
        page_size=config.danbooru.page_size,
        retention=retention,
    )

    llm = None
    try:
        llm = create_executor(config.chat.ai_provider, timeout=config.chat.timeout_seconds)
    except ValueError as e:
        _log(f"[app] chat disabled: {e}")
    chat = ChatResponder(
        llm,
        chat_log=chat_log,
        bot_name=config.chat.bot_name,
        persona=config.chat.persona,
        rules=config.chat.rules,
        model=config.chat.model,
        history_size=config.chat.history_size,
    )

    prefixes = config.command_prefixes
    registry = build_registry(retriever, block_list, prefix=prefixes[0] if prefixes else "!")
    _log(f"[app] {len(registry)} commands registered: {', '.join(registry.names())}")

    processor = KumaProcessor(
        registry,
        default_handler=chat,
        chat_log=chat_log,
        command_prefixes=config.command_prefixes,
    )
    return KumaApp(config=config, redis=redis, processor=processor, chat_log=chat_log)
