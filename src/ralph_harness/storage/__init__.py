"""Storage abstractions for harness state files."""

from .slots import FileSlotStore, MemorySlotStore, SlotStore

__all__ = [
    "FileSlotStore",
    "MemorySlotStore",
    "SlotStore",
]
