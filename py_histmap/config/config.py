from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Engine settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HISTMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Clustering Configuration
    spatial_index_cell_size: float = Field(
        default=50.0, gt=0, description="Spatial index cell size in screen pixels"
    )
    default_marker_size: int = Field(default=20, description="Default marker size in pixels")
    device_pixel_ratio: float = Field(
        default=1.0, gt=0, description="Screen pixel ratio applied to marker sizes"
    )

    # Province Opacity Configuration
    max_population_for_opacity: float = Field(
        default=10_000_000, gt=0, description="Population mapped to maximum opacity"
    )
    population_opacity_min: float = Field(default=0.3, description="Opacity at zero population")
    population_opacity_max: float = Field(default=0.8, description="Opacity at max population")


# Instantiate singleton settings object
settings = Settings()
