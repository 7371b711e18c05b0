"""Storage layer - Report markers."""

from slacktapped.storage.markers import InMemoryMarkerStore, MarkerStore, RedisMarkerStore

__all__ = [
    "InMemoryMarkerStore",
    "MarkerStore",
    "RedisMarkerStore",
]
