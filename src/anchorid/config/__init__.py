"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_float, optional_env_str
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import StorageConfig, get_storage_config
from .verification import VerificationConfig, get_verification_config

__all__ = [
    "ConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "VerificationConfig",
    "configure_logging",
    "get_storage_config",
    "get_verification_config",
    "optional_env_float",
    "optional_env_str",
]
