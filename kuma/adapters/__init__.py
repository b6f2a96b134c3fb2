"""Adapters — Redis, Danbooru, Discord and LLM implementations of the ports."""
