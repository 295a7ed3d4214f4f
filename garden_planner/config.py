"""
Application configuration using Pydantic settings.
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GARDEN_",
        case_sensitive=False,
    )

    # Catalog Source Configuration
    catalog_dir: Optional[str] = Field(
        default=None,
        description="Directory holding vegetables.json and companion_rules.json "
                    "(bundled catalog is used when unset)"
    )
    catalog_base_url: Optional[str] = Field(
        default=None,
        description="Base URL serving the catalog documents over HTTP"
    )
    catalog_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for remote catalog requests"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for catalog requests"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=4,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Evolutionary Refinement Parameters
    refinement_enabled: bool = Field(
        default=True,
        description="Whether the evolutionary refiner runs after layout generation"
    )
    refinement_population_size: int = Field(
        default=100,
        ge=1,
        description="Number of layouts in each generation"
    )
    refinement_generations: int = Field(
        default=50,
        ge=1,
        description="Fixed number of generations to evolve"
    )
    refinement_mutation_rate: float = Field(
        default=0.15,
        ge=0.0,
        le=1.0,
        description="Probability that an offspring is mutated"
    )
    refinement_crossover_rate: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Probability that an offspring is produced by crossover"
    )
    refinement_elite_count: int = Field(
        default=10,
        ge=0,
        description="Number of top layouts carried unchanged into the next generation"
    )
    refinement_tournament_size: int = Field(
        default=5,
        ge=1,
        description="Number of layouts sampled per tournament selection"
    )
    refinement_time_limit_seconds: Optional[float] = Field(
        default=10.0,
        ge=0.0,
        description="Wall-clock budget after which evolution stops between generations"
    )

    # Layout Quality Thresholds
    min_utilization: float = Field(
        default=0.5,
        description="Utilisation rate below which a low_utilisation warning is raised"
    )
    min_companion_score: float = Field(
        default=0.4,
        description="Companion score below which a bad_companion warning is raised"
    )
    min_spacing_score: float = Field(
        default=0.7,
        description="Spacing score below which a spacing_violation warning is raised"
    )
    default_antagonist_min_distance: float = Field(
        default=80.0,
        description="Minimum separation in cm for antagonistic rules without one"
    )

    # Quantity Planning
    quantity_buffer_factor: float = Field(
        default=1.15,
        description="Headroom applied to priority-share plant targets to fill rows"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Garden Layout Planner",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )


# Global settings instance
settings = Settings()
