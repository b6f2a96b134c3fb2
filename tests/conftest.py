"""Shared fixtures: an in-memory stand-in for the redis.asyncio client."""

import asyncio
from collections import OrderedDict

import pytest
from redis.exceptions import ResponseError


def _id_num(entry_id: str) -> int:
    return int(entry_id.split("-")[0])


class FakeRedis:
    """Implements the subset of redis.asyncio.Redis the adapters use.

    Approximate MAXLEN trimming only drops entries in whole chunks of
    ``trim_chunk``, like Redis trimming by macro node.
    """

    def __init__(self, trim_chunk: int = 10):
        self.values = {}
        self.ttls = {}
        self.sets = {}
        self.streams = {}  # name -> OrderedDict[id, fields]
        self.groups = {}  # (stream, group) -> {"last": int, "pending": {id: consumer}}
        self.acked = []
        self.trim_chunk = trim_chunk
        self._seq = 0
        self.closed = False

    # -- keys --

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value, ex=None):
        self.values[key] = value
        self.ttls[key] = ex
        return True

    async def scan_iter(self, match=None, count=None):
        prefix = (match or "*").rstrip("*").replace("\\", "")
        for key in list(self.values):
            if key.startswith(prefix):
                yield key

    # -- sets --

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def sadd(self, key, *members):
        s = self.sets.setdefault(key, set())
        added = len([m for m in members if m not in s])
        s.update(members)
        return added

    async def srem(self, key, *members):
        s = self.sets.setdefault(key, set())
        removed = len([m for m in members if m in s])
        s.difference_update(members)
        return removed

    # -- streams --

    async def xadd(self, name, fields, id="*", maxlen=None, approximate=True):
        self._seq += 1
        entry_id = f"{self._seq}-0"
        stream = self.streams.setdefault(name, OrderedDict())
        stream[entry_id] = dict(fields)
        if maxlen is not None:
            excess = len(stream) - maxlen
            if excess > 0 and (not approximate or excess >= self.trim_chunk):
                for old_id in list(stream)[:excess]:
                    del stream[old_id]
        return entry_id

    async def xlen(self, name):
        return len(self.streams.get(name, {}))

    async def xrange(self, name):
        return list(self.streams.get(name, OrderedDict()).items())

    async def xgroup_create(self, name, groupname, id="$", mkstream=False):
        if name not in self.streams:
            if not mkstream:
                raise ResponseError("ERR no such key")
            self.streams[name] = OrderedDict()
        if (name, groupname) in self.groups:
            raise ResponseError("BUSYGROUP Consumer Group name already exists")
        stream = self.streams[name]
        last = _id_num(next(reversed(stream))) if (id == "$" and stream) else 0
        self.groups[(name, groupname)] = {"last": last, "pending": {}}
        return True

    async def xreadgroup(self, groupname, consumername, streams, count=None, block=None, noack=False):
        result = []
        for name, cursor in streams.items():
            group = self.groups.get((name, groupname))
            if group is None:
                raise ResponseError("NOGROUP No such key or consumer group")
            stream = self.streams.get(name, OrderedDict())
            entries = []
            if cursor == ">":
                for entry_id, fields in stream.items():
                    if _id_num(entry_id) <= group["last"]:
                        continue
                    entries.append((entry_id, dict(fields)))
                    group["last"] = _id_num(entry_id)
                    group["pending"][entry_id] = consumername
                    if count and len(entries) >= count:
                        break
            else:
                after = _id_num(cursor)
                for entry_id, owner in sorted(group["pending"].items(), key=lambda kv: _id_num(kv[0])):
                    if owner != consumername or _id_num(entry_id) <= after:
                        continue
                    entries.append((entry_id, dict(stream.get(entry_id, {}))))
                    if count and len(entries) >= count:
                        break
                result.append([name, entries])
                continue
            if entries:
                result.append([name, entries])
        if not result:
            await asyncio.sleep(0)
            return None
        return result

    async def xack(self, name, groupname, *ids):
        group = self.groups.get((name, groupname), {"pending": {}})
        acked = 0
        for entry_id in ids:
            if group["pending"].pop(entry_id, None) is not None:
                acked += 1
                self.acked.append(entry_id)
        return acked

    def pending(self, name, groupname):
        return dict(self.groups[(name, groupname)]["pending"])

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()
