from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NlpGraphSettings(BaseSettings):
    """Unified configuration for nlp-graph.

    Environment variables are prefixed with NLP_GRAPH_.
    """

    model_config = SettingsConfigDict(env_prefix="NLP_GRAPH_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- ConceptNet ---
    conceptnet_url: str = Field(default="http://api.conceptnet.io")
    conceptnet_limit: int = Field(default=100, description="Edges requested per lookup")
    conceptnet_depth: int = Field(default=2, description="Default hierarchy depth")
    supported_languages: list[str] = Field(
        default_factory=lambda: ["en"],
        description="Languages the concept resolver can annotate",
    )
    http_timeout: float = Field(default=30.0, description="Read timeout in seconds")

    # --- Concept resolution cache ---
    cache_max_size: int = 10_000
    cache_ttl_seconds: float = 30 * 60

    # --- Materialization ---
    idempotent_occurrences: bool = Field(
        default=True,
        description="Reuse occurrence nodes keyed by (sentence, span) on re-persist",
    )
    schema_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Graph naming overrides, e.g. {'HAS_TAG': 'TAGGED'}",
    )

    # --- Graph DB (Neo4j) ---
    neo4j_uri: str | None = None
    neo4j_user: str | None = None
    neo4j_password: str | None = None
    neo4j_database: str = "neo4j"


settings = NlpGraphSettings()
