"""Application configuration."""
import os
import secrets
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional


def _env_decimal(name: str, default: str) -> Decimal:
    return Decimal(os.environ.get(name, default))


class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or secrets.token_hex(32)

    # Budget engine
    DEFAULT_CURRENCY = os.environ.get('DEFAULT_CURRENCY', 'RUB')
    CATEGORY_SHARE_WARNING = _env_decimal('CATEGORY_SHARE_WARNING', '0.5')
    SATURATION_BUFFER = _env_decimal('SATURATION_BUFFER', '0.05')
    LOW_UTILIZATION_PERCENT = _env_decimal('LOW_UTILIZATION_PERCENT', '50')
    ROUNDING_TOLERANCE = _env_decimal('ROUNDING_TOLERANCE', '0.01')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE', 'logs/crystalbudget.log')


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    HTTPS_MODE = os.environ.get('HTTPS_MODE', 'false').lower() == 'true'


class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    LOG_LEVEL = 'DEBUG'


config_by_name = {
    "production": ProductionConfig,
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}


def get_config(config_name=None):
    """Get configuration based on environment."""
    if config_name is None:
        config_name = os.environ.get('APP_CONFIG', 'production')
    return config_by_name.get(config_name, ProductionConfig)


@dataclass(frozen=True)
class EngineSettings:
    """Thresholds the budget engine reads from configuration."""
    default_currency: str = 'RUB'
    category_share_warning: Decimal = Decimal('0.5')
    saturation_buffer: Decimal = Decimal('0.05')
    low_utilization_percent: Decimal = Decimal('50')
    rounding_tolerance: Decimal = Decimal('0.01')

    @classmethod
    def from_config(cls, config: Optional[Mapping] = None) -> 'EngineSettings':
        """Build settings from a Flask config (or any mapping)."""
        if not config:
            return cls()
        defaults = cls()
        return cls(
            default_currency=config.get('DEFAULT_CURRENCY', defaults.default_currency),
            category_share_warning=Decimal(str(config.get('CATEGORY_SHARE_WARNING', defaults.category_share_warning))),
            saturation_buffer=Decimal(str(config.get('SATURATION_BUFFER', defaults.saturation_buffer))),
            low_utilization_percent=Decimal(str(config.get('LOW_UTILIZATION_PERCENT', defaults.low_utilization_percent))),
            rounding_tolerance=Decimal(str(config.get('ROUNDING_TOLERANCE', defaults.rounding_tolerance))),
        )
