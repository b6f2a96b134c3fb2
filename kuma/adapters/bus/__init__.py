"""Bus adapter — Redis streams between front ends and the core."""

from kuma.adapters.bus.client import BusKumaClient
from kuma.adapters.bus.codec import decode_request, decode_response, encode_request, encode_response
from kuma.adapters.bus.consumer import RedisStreamConsumer, request_consumer, response_consumer
from kuma.adapters.bus.publisher import ResponseForwarder, StreamPublisher
from kuma.adapters.bus.streams import consumer_stream_name, stream_name_for_source

__all__ = [
    "BusKumaClient",
    "decode_request",
    "decode_response",
    "encode_request",
    "encode_response",
    "RedisStreamConsumer",
    "request_consumer",
    "response_consumer",
    "ResponseForwarder",
    "StreamPublisher",
    "consumer_stream_name",
    "stream_name_for_source",
]
