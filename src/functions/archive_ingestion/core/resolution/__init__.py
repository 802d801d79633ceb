from .entity_resolver import EntityResolver

__all__ = ["EntityResolver"]
