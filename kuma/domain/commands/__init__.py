"""The closed set of commands, assembled once at startup."""

from kuma.domain.commands.danbooru import DanbooruCommands
from kuma.domain.commands.general import GeneralCommands
from kuma.domain.registry import CommandRegistry
from kuma.domain.retrieval import DedupRandomRetriever
from kuma.ports.outbound import BlockListPort


def build_registry(
    retriever: DedupRandomRetriever, block_list: BlockListPort, prefix: str = "!",
) -> CommandRegistry:
    """``prefix`` is the one help advertises."""
    general = GeneralCommands(prefix)
    danbooru = DanbooruCommands(retriever, block_list)
    registry = CommandRegistry([*general.descriptors(), *danbooru.descriptors()])
    general.registry = registry
    return registry


__all__ = ["DanbooruCommands", "GeneralCommands", "build_registry"]
