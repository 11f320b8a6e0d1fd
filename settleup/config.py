import os
from pathlib import Path

from dotenv import load_dotenv


_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent

# Root .env is canonical; settleup/.env remains a fallback for local overrides.
load_dotenv(_PROJECT_ROOT / ".env")
load_dotenv(_PACKAGE_DIR / ".env")


def _first_non_empty_env(*names: str, default: str) -> str:
    """Returns the first non-empty env var value from `names`, else `default`."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value != "":
            return value
    return default


def _parse_int_env(*names: str, default: int) -> int:
    """Parses the first non-empty env var in `names` as int, else returns `default`."""
    raw = _first_non_empty_env(*names, default=str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


class BaseConfig:

    JSON_SORT_KEYS: bool = False

    # Settlements at or above this amount (paisa) need step-up biometric auth.
    # Default ₹5,000. BIOMETRIC_THRESHOLD is accepted as a shorter alias.
    BIOMETRIC_THRESHOLD_PAISA: int = _parse_int_env(
        "BIOMETRIC_THRESHOLD_PAISA",
        "BIOMETRIC_THRESHOLD",
        default=500000,
    )

    # Currency used to format explanations when a request does not name one.
    DEFAULT_CURRENCY: str = _first_non_empty_env("DEFAULT_CURRENCY", default="INR").upper()

    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="INFO").upper()


class DevelopmentConfig(BaseConfig):
    DEBUG:   bool = True
    TESTING: bool = False

    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="DEBUG").upper()


class TestingConfig(BaseConfig):

    DEBUG:   bool = True
    TESTING: bool = True

    # Tests assert against the documented defaults, never the local .env.
    BIOMETRIC_THRESHOLD_PAISA: int = 500000
    DEFAULT_CURRENCY: str = "INR"
    LOG_LEVEL: str = "WARNING"


class ProductionConfig(BaseConfig):

    DEBUG:   bool = False
    TESTING: bool = False


def validate_production_config(app) -> None:
    """
    Fail-fast guard for production configuration.

    Must be called in the app factory immediately after
    app.config.from_object(ProductionConfig):

        app.config.from_object(ProductionConfig)
        validate_production_config(app)   # raises ValueError if misconfigured

    Raises ValueError if any required production value is missing or unusable.
    """
    from settleup.app.utils.currency import is_supported

    if app.config.get("BIOMETRIC_THRESHOLD_PAISA", 0) <= 0:
        raise ValueError(
            "BIOMETRIC_THRESHOLD_PAISA must be a positive number of paisa in production. "
            "A zero or negative threshold would require biometric checks for every settlement."
        )
    if not is_supported(app.config.get("DEFAULT_CURRENCY", "")):
        raise ValueError(
            f"DEFAULT_CURRENCY {app.config.get('DEFAULT_CURRENCY')!r} is not supported. "
            "Set it to one of INR, USD, EUR, GBP."
        )


# ── Config selector ────────────────────────────────────────────────────────
#
# Used by the app factory:
#   from settleup.config import config_by_name
#   app.config.from_object(config_by_name[flask_env])
# ──────────────────────────────────────────────────────────────────────────

config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
}

# Convenience alias: resolves the active config class from FLASK_ENV.
# Defaults to development if the variable is not set.
ActiveConfig: type[BaseConfig] = config_by_name.get(
    os.getenv("FLASK_ENV", "development"),
    DevelopmentConfig,
)
