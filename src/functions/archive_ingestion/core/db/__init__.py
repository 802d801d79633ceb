from .memory_store import InMemoryArchiveStore
from .store import ArchiveStore, DuplicateEntityError, StoreError, is_duplicate_error
from .supabase_store import SupabaseArchiveStore

__all__ = [
    "ArchiveStore",
    "DuplicateEntityError",
    "InMemoryArchiveStore",
    "StoreError",
    "SupabaseArchiveStore",
    "is_duplicate_error",
]
