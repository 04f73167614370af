from .embedding_cache import EmbeddingCache
from .memory_auto_save import MemoryAutoSave
from .memory_store import InMemoryMemoryStore, MemoryStore

__all__ = ["EmbeddingCache", "InMemoryMemoryStore", "MemoryAutoSave", "MemoryStore"]
