from .enrichment_client import EnrichmentClient, EnrichmentError

__all__ = ["EnrichmentClient", "EnrichmentError"]
