"""Shared Supabase connection utilities."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Sequence

from supabase import Client, create_client

from src.shared.utils.config_validator import ConfigurationError

logger = logging.getLogger(__name__)

_KEY_VARIABLES = ("SUPABASE_KEY", "SUPABASE_SERVICE_ROLE_KEY")


@dataclass
class SupabaseConfig:
    """Configuration for Supabase connection.

    Attributes:
        url: Supabase project URL
        key: Supabase API key (the ingestion jobs need the service role key)
        schema: Database schema to use (default: public)
    """
    url: str
    key: str
    schema: str = "public"

    @classmethod
    def from_env(
        cls,
        url_var: str = "SUPABASE_URL",
        key_vars: Sequence[str] = _KEY_VARIABLES,
        schema_var: str = "SUPABASE_SCHEMA",
    ) -> SupabaseConfig:
        """Create configuration from environment variables.

        Raises:
            ConfigurationError: If the URL or every key alias is missing
        """
        url = (os.getenv(url_var) or "").strip()
        key = next((os.getenv(name).strip() for name in key_vars if (os.getenv(name) or "").strip()), "")
        schema = (os.getenv(schema_var) or "public").strip() or "public"

        if not url or not key:
            raise ConfigurationError(
                f"Missing required environment variables: {url_var} and/or one of "
                f"{', '.join(key_vars)}. Please set them in your .env file or environment."
            )

        return cls(url=url, key=key, schema=schema)


def get_supabase_client(config: Optional[SupabaseConfig] = None) -> Client:
    """Create a Supabase client, scoped to a non-public schema when configured.

    Example:
        >>> client = get_supabase_client()
        >>> client.table("records").select("id").limit(1).execute()
    """
    if config is None:
        config = SupabaseConfig.from_env()

    logger.debug("Creating Supabase client for %s", config.url)
    client = create_client(config.url, config.key)

    if config.schema != "public":
        client.postgrest.schema(config.schema)
        logger.debug("Using schema: %s", config.schema)

    return client
