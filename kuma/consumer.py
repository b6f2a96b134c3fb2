"""Bus consumer process: inbound stream → processor → per-origin streams."""

import asyncio
import signal
import sys
from typing import Optional

from kuma.adapters.bus.consumer import RedisStreamConsumer, request_consumer
from kuma.adapters.bus.publisher import ResponseForwarder, StreamPublisher
from kuma.adapters.bus.streams import consumer_stream_name
from kuma.app import KumaApp, build_app
from kuma.config import AppConfig


def _log(msg: str):
    print(msg, file=sys.stderr)


def build_consumer(app: KumaApp) -> RedisStreamConsumer:
    """Create the inbound read loop; each entry is processed and its reply published."""
    cfg = app.config.redis
    publisher = StreamPublisher(app.redis, max_length=cfg.stream_max_length, prefix=cfg.stream_prefix)
    return request_consumer(
        app.redis,
        consumer_stream_name(cfg.stream_prefix),
        cfg.consumer_group,
        cfg.consumer_name,
        ResponseForwarder(publisher, app.processor.process),
        block_ms=cfg.read_block_ms,
        batch_size=cfg.read_batch_size,
    )


async def run_consumer(config: Optional[AppConfig] = None):
    config = config or AppConfig.from_env()
    app = build_app(config)
    consumer = build_consumer(app)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, consumer.stop)
        except NotImplementedError:
            pass  # Windows

    await consumer.start()
    _log(f"[consumer] listening on {consumer.stream}")
    await consumer.wait_stopped()
    _log(f"[consumer] stopping ({consumer.in_flight} task(s) abandoned)")
    await app.redis.aclose()


def main():
    asyncio.run(run_consumer())


if __name__ == "__main__":
    main()
