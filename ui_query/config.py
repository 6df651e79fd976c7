"""
Configuration
Runtime settings read from environment variables.
"""
from dataclasses import dataclass, replace
from typing import Optional
import logging
import os
import re

logger = logging.getLogger(__name__)


def _as_int(value, default: int = 0) -> int:
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        m = re.search(r"-?\d+(?:\.\d+)?", value)
        if m:
            try:
                return int(float(m.group(0)))
            except ValueError:
                return default
    return default


def _as_float(value, default: float = 0.0) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def _as_bool(value, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        val = value.strip().lower()
        if val in {"1", "true", "yes", "enabled", "on"}:
            return True
        if val in {"0", "false", "no", "disabled", "off"}:
            return False
    return default


@dataclass(frozen=True)
class Settings:
    """Tunables for root acquisition and logging"""

    dump_retries: int = 3
    dump_retry_interval: float = 1.0
    dump_timeout: int = 20
    atx_port: int = 7912
    use_atx: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        """
        Build settings from UI_QUERY_* environment variables.

        Out-of-range values are clamped rather than rejected.
        """
        env = os.environ if environ is None else environ
        level = str(env.get("UI_QUERY_LOG_LEVEL", "INFO")).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            logger.warning(f"Unknown UI_QUERY_LOG_LEVEL {level!r}, using INFO")
            level = "INFO"
        return cls(
            dump_retries=max(1, _as_int(env.get("UI_QUERY_DUMP_RETRIES", "3"), 3)),
            dump_retry_interval=max(0.0, _as_float(env.get("UI_QUERY_DUMP_RETRY_INTERVAL", "1.0"), 1.0)),
            dump_timeout=max(1, _as_int(env.get("UI_QUERY_DUMP_TIMEOUT", "20"), 20)),
            atx_port=max(1, _as_int(env.get("UI_QUERY_ATX_PORT", "7912"), 7912)),
            use_atx=_as_bool(env.get("UI_QUERY_USE_ATX", "true"), True),
            log_level=level,
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied"""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
