"""Podtracks - resolve Podcasting 2.0 remote items into a deduplicated track catalog."""

__version__ = "0.3.0"
