"""
Centralized settings and path configuration for the pricing service.

Values default to the bundled tier table and standard billing policy; each
can be overridden with a RELAY_PRICING_* environment variable.
"""
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

ENV_PREFIX = "RELAY_PRICING_"

PACKAGE_DIR = Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env(name: str) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = _env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}")


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {value!r}")


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Tier configuration (CSV)
    pricing_tiers_csv: Path
    pricing_tiers_csv_required: bool = False  # True when set explicitly

    # Billing policy
    annual_discount_percent: int = 20
    max_asset_count: Optional[int] = None  # None = no upper limit

    # Quote memoization (0 disables)
    quote_cache_size: int = 1024

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # HTTP
    cors_origins: tuple = field(default=("*",))

    def __post_init__(self):
        if not 0 <= self.annual_discount_percent <= 100:
            raise ValueError(
                f"annual_discount_percent must be between 0 and 100, got {self.annual_discount_percent}"
            )
        if self.max_asset_count is not None and self.max_asset_count < 1:
            raise ValueError(f"max_asset_count must be at least 1, got {self.max_asset_count}")
        if self.quote_cache_size < 0:
            raise ValueError(f"quote_cache_size cannot be negative, got {self.quote_cache_size}")

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        tiers_csv = _env("TIERS_CSV")
        origins = _env("CORS_ORIGINS")

        return cls(
            project_root=root,
            pricing_tiers_csv=Path(tiers_csv) if tiers_csv else PACKAGE_DIR / 'data' / 'pricing_tiers.csv',
            pricing_tiers_csv_required=bool(tiers_csv),
            annual_discount_percent=_env_int("ANNUAL_DISCOUNT_PERCENT", 20),
            max_asset_count=_env_int("MAX_ASSET_COUNT", None),
            quote_cache_size=_env_int("QUOTE_CACHE_SIZE", 1024),
            log_level=(_env("LOG_LEVEL") or "INFO").upper(),
            json_logs=_env_bool("JSON_LOGS", True),
            cors_origins=tuple(o.strip() for o in origins.split(',')) if origins else ("*",),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
