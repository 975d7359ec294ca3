"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application
    app_name: str = "LLM Scorecard"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # Ranking
    ndcg_k: int = Field(default=10, ge=1)
    mrr_threshold: int = Field(default=3, ge=0)

    # Text / structured scoring
    action_item_f1_threshold: float = Field(default=0.3, ge=0.0, le=1.0)

    # Compliance weighting (schema / rule / uniqueness)
    schema_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    rule_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    uniqueness_weight: float = Field(default=0.2, ge=0.0, le=1.0)

    # Evaluation harness
    violation_display_limit: int = Field(default=5, ge=0)
    results_dir: str = "evaluation/results"

    @property
    def compliance_weights(self) -> tuple[float, float, float]:
        """Weights applied to schema, rule and uniqueness compliance."""
        return (self.schema_weight, self.rule_weight, self.uniqueness_weight)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
