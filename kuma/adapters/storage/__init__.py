from kuma.adapters.storage.json_store import JsonLineStorage
from kuma.adapters.storage.redis_block_list import RedisBlockList

__all__ = ["JsonLineStorage", "RedisBlockList"]
