"""Configuration loaded from the environment."""

__version__ = "0.1.0"

import os
import socket
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)

SUPPORTED_AI_PROVIDERS = ("claude", "codex", "none")

DEFAULT_PERSONA = (
    "You are a chat bot named after the Japanese battleship, Kuma. "
    "Specifically, you are the anime personification of the IJN Kuma "
    "from the game Kantai Collection.\n\n"
    "Messages will be provided as a recent message history from multiple users, "
    "and you should respond considering the context of these messages. "
    "When responding, you must obey the following rules:"
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, falling back to {default}")
        return default


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, ignoring")
        return None


def _env_list(name: str, default: List[str], sep: str = ",") -> List[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [part.strip() for part in raw.split(sep) if part.strip()]


@dataclass
class RedisConfig:
    url: str = "redis://localhost:6379/0"
    stream_prefix: str = "kumakaini"
    stream_max_length: int = 1000
    read_block_ms: int = 5000
    read_batch_size: int = 10
    consumer_group: str = "kumakaini"
    consumer_name: str = "kumakaini"


@dataclass
class DanbooruConfig:
    base_url: str = "https://danbooru.donmai.us"
    user: str = ""
    api_key: str = ""
    page_size: int = 50
    request_timeout_seconds: int = 30

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.api_key)


@dataclass
class DiscordConfig:
    token: str = ""
    admin_id: Optional[int] = None
    mod_role_id: Optional[int] = None


@dataclass
class ChatConfig:
    bot_name: str = "Kuma"
    ai_provider: str = "claude"
    model: Optional[str] = None
    persona: str = DEFAULT_PERSONA
    rules: List[str] = field(default_factory=list)
    history_size: int = 10
    timeout_seconds: int = 120


@dataclass
class AppConfig:
    """Typed configuration for both the consumer and the Discord gateway."""

    storage_dir: str = "memory"
    command_prefixes: Tuple[str, ...] = ("!", "/")
    log_max_records: int = 5000
    redis: RedisConfig = field(default_factory=RedisConfig)
    danbooru: DanbooruConfig = field(default_factory=DanbooruConfig)
    discord: DiscordConfig = field(default_factory=DiscordConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        ai_provider = os.getenv("AI_PROVIDER", "claude").strip().lower()
        if ai_provider not in SUPPORTED_AI_PROVIDERS:
            _stderr_print(f"Unsupported AI_PROVIDER={ai_provider!r}, falling back to 'none'")
            ai_provider = "none"

        return cls(
            storage_dir=os.getenv("KUMA_STORAGE_DIR", "memory"),
            command_prefixes=tuple(_env_list("KUMA_COMMAND_PREFIXES", ["!", "/"])),
            log_max_records=_env_int("KUMA_LOG_MAX_RECORDS", 5000),
            redis=RedisConfig(
                url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
                stream_prefix=os.getenv("KUMA_STREAM_PREFIX", "kumakaini"),
                stream_max_length=_env_int("KUMA_STREAM_MAX_LENGTH", 1000),
                read_block_ms=_env_int("KUMA_STREAM_BLOCK_MS", 5000),
                read_batch_size=_env_int("KUMA_STREAM_BATCH_SIZE", 10),
                consumer_group=os.getenv("KUMA_CONSUMER_GROUP", "kumakaini"),
                consumer_name=os.getenv("KUMA_CONSUMER_NAME", "") or socket.gethostname(),
            ),
            danbooru=DanbooruConfig(
                base_url=os.getenv("DANBOORU_BASE_URL", "https://danbooru.donmai.us").rstrip("/"),
                user=os.getenv("DANBOORU_USER", ""),
                api_key=os.getenv("DANBOORU_API_KEY", ""),
                page_size=_env_int("DANBOORU_PAGE_SIZE", 50),
                request_timeout_seconds=_env_int("DANBOORU_TIMEOUT", 30),
            ),
            discord=DiscordConfig(
                token=os.getenv("DISCORD_TOKEN", ""),
                admin_id=_env_optional_int("DISCORD_ADMIN_ID"),
                mod_role_id=_env_optional_int("DISCORD_MOD_ROLE_ID"),
            ),
            chat=ChatConfig(
                bot_name=os.getenv("KUMA_BOT_NAME", "Kuma"),
                ai_provider=ai_provider,
                model=os.getenv("AI_MODEL") or None,
                persona=os.getenv("KUMA_PERSONA", DEFAULT_PERSONA),
                rules=_env_list("KUMA_RULES", [], sep="\n"),
                history_size=_env_int("KUMA_CHAT_HISTORY", 10),
                timeout_seconds=_env_int("AI_TIMEOUT", 120),
            ),
        )
