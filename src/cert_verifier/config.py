"""
Environment-based configuration.

Environment variables:
    CERT_SIGNATURE_SERVICE_URL - Signature verification endpoint
                                 (default: http://localhost:8013/verify)
    CERT_SIGNATURE_TIMEOUT_S   - Signature service timeout in seconds (default: 5.0)
    CERT_STORE_PROVIDER        - Content store provider: http, azure, aws (default: http)
    CERT_STORE_BASE_URL        - Base URL for the http provider
    CERT_STORE_ACCOUNT         - Storage account for the azure provider
    CERT_STORE_CONTAINER       - Container (bucket) holding certificates
    CERT_STORE_TIMEOUT_S       - Content store timeout in seconds (default: 5.0)
    CERT_TMP_DIR               - Directory for transient certificate files
    CERT_WORKERS               - Number of verifier workers (default: 4)
    CERT_LOG_LEVEL             - Log level (default: INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

from .signature import DEFAULT_SIGNATURE_SERVICE_URL
from .store import StoreConfig

DEFAULT_TIMEOUT_S = 5.0
DEFAULT_WORKERS = 4


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    value = float(raw)
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    value = int(raw)
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """
    Read-only configuration shared by all workers.

    Attributes:
        signature_service_url: URL of the signature verification endpoint
        signature_timeout_s: Bound on each signature service call
        store: Content store configuration
        tmp_dir: Directory for transient certificate files (None: system default)
        workers: Number of verifier workers in the pool
        log_level: Root log level name
    """
    signature_service_url: str = DEFAULT_SIGNATURE_SERVICE_URL
    signature_timeout_s: float = DEFAULT_TIMEOUT_S
    store: StoreConfig = field(default_factory=StoreConfig)
    tmp_dir: str | None = None
    workers: int = DEFAULT_WORKERS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """
        Build settings from environment variables.

        Raises:
            ValueError: If a numeric variable is not a positive number
        """
        env = os.environ if env is None else env
        store = StoreConfig(
            provider=env.get("CERT_STORE_PROVIDER", "http").lower(),
            base_url=env.get("CERT_STORE_BASE_URL"),
            account=env.get("CERT_STORE_ACCOUNT"),
            container=env.get("CERT_STORE_CONTAINER"),
            timeout_s=_positive_float(env, "CERT_STORE_TIMEOUT_S", DEFAULT_TIMEOUT_S),
        )
        return cls(
            signature_service_url=env.get("CERT_SIGNATURE_SERVICE_URL", DEFAULT_SIGNATURE_SERVICE_URL),
            signature_timeout_s=_positive_float(env, "CERT_SIGNATURE_TIMEOUT_S", DEFAULT_TIMEOUT_S),
            store=store,
            tmp_dir=env.get("CERT_TMP_DIR") or None,
            workers=_positive_int(env, "CERT_WORKERS", DEFAULT_WORKERS),
            log_level=env.get("CERT_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler for running the service standalone."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
