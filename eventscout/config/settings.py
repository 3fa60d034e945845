"""Environment-driven settings (pydantic-settings).

Precedence, highest first: process environment, the project `.env` file,
then the defaults declared here.  Field names map to upper-case variables,
so ``default_parsing_timeout`` reads ``DEFAULT_PARSING_TIMEOUT``.

Per-run knobs (flags, thresholds, limits, timeouts) are copied into the
frozen SearchRequest by ``build_search_request``; pipeline code never reads
settings while a run is in flight.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide configuration for the API server and the CLI."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM Providers (ranking + primary extraction) ===
    # Empty string = "not configured"; main.py skips providers without keys
    # and the pipeline runs on heuristics and structured-data extraction.
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_text_model: str = ""

    # === Discovery ===
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev"
    search_region_by_country: bool = True
    enable_tld_preference: bool = False

    # === Feature flags (snapshotted into every SearchRequest) ===
    bypass_ai_ranking: bool = False
    relax_quality: bool = True
    relax_date: bool = True
    relax_country: bool = True
    allow_undated: bool = False
    enable_curated_tier: bool = True
    enable_widened_rerun: bool = True
    enable_demo_fallback: bool = True

    # === Per-run defaults ===
    default_prioritization_threshold: float = 0.25
    default_confidence_threshold: float = 0.8
    default_parse_quality_threshold: float = 0.4
    default_max_candidates: int = 40
    default_max_extractions: int = 12
    default_extraction_concurrency: int = 4
    default_early_termination: int = 8
    default_max_attempts: int = 2
    default_discovery_timeout: float = 10.0
    default_prioritization_timeout: float = 12.0
    default_parsing_timeout: float = 15.0
    default_extraction_stage_timeout: float = 45.0
    default_run_timeout: float = 90.0
    default_retry_backoff: float = 0.5
    default_date_grace_days: int = 7
    default_window_days: int = 60

    # === Cache ===
    search_cache_ttl: int = 900
    search_cache_max_size: int = 256
    # Demo-data results only; 0 never caches them.
    search_cache_fallback_ttl: int = 60

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    config_path: str = "config/config.yaml"

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        return providers
