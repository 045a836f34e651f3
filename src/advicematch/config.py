"""
advicematch Configuration

Engine settings read from the environment, and structured logging setup.

Environment variables:
    ADVICEMATCH_LOG_LEVEL         Log level name (default INFO)
    ADVICEMATCH_LOG_JSON          Emit JSON log lines (default true)
    ADVICEMATCH_MAX_WORKERS       Candidate evaluation threads (default 1)
    ADVICEMATCH_INCLUDE_EXCLUDED  Keep excluded results in reports (default false)
    ADVICEMATCH_RESULT_LIMIT      Max included results per report (default unset)

Invalid values fall back to the default with a warning.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional


logger = logging.getLogger(__name__)

ENV_PREFIX = "ADVICEMATCH_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# LogRecord attributes copied into JSON log lines when a caller passes them via extra=
_EXTRA_FIELDS = (
    "advice_id",
    "flow",
    "candidate_count",
    "included_count",
    "excluded_count",
    "report_hash_short",
    "duration_ms",
)


# =============================================================================
# Environment Parsing
# =============================================================================

def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    logger.warning("Invalid %s=%r, using %s", name, raw, default)
    return default


def _env_int(env: Mapping[str, str], name: str, default: Optional[int], minimum: int) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("Invalid %s=%r, using %s", name, raw, default)
        return default
    if value < minimum:
        logger.warning("%s=%d is below %d, using %s", name, value, minimum, default)
        return default
    return value


def _env_level(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().upper()
    if value not in _LOG_LEVELS:
        logger.warning("Invalid %s=%r, using %s", name, raw, default)
        return default
    return value


# =============================================================================
# Engine Settings
# =============================================================================

@dataclass(frozen=True)
class EngineSettings:
    """
    Runtime settings for the targeting pipeline.

    Attributes:
        log_level: Level for the advicematch logger
        log_json: Use the JSON formatter (False: plain text)
        max_workers: Threads for candidate evaluation; 1 is sequential
        include_excluded: Keep excluded results (with traces) in reports
        result_limit: Truncate included results after sorting; None keeps all
    """
    log_level: str = "INFO"
    log_json: bool = True
    max_workers: int = 1
    include_excluded: bool = False
    result_limit: Optional[int] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> EngineSettings:
        """Read settings from ``env`` (default: ``os.environ``)."""
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            log_level=_env_level(env, f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level),
            log_json=_env_bool(env, f"{ENV_PREFIX}LOG_JSON", defaults.log_json),
            max_workers=_env_int(env, f"{ENV_PREFIX}MAX_WORKERS", defaults.max_workers, 1),
            include_excluded=_env_bool(env, f"{ENV_PREFIX}INCLUDE_EXCLUDED", defaults.include_excluded),
            result_limit=_env_int(env, f"{ENV_PREFIX}RESULT_LIMIT", defaults.result_limit, 0),
        )


# =============================================================================
# Logging
# =============================================================================

class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(settings: Optional[EngineSettings] = None) -> logging.Logger:
    """
    Attach a stream handler to the ``advicematch`` logger.

    Safe to call more than once; the previous handler installed here is
    replaced rather than duplicated.
    """
    settings = settings or EngineSettings.from_env()
    root = logging.getLogger("advicematch")
    root.setLevel(getattr(logging, settings.log_level))

    for existing in list(root.handlers):
        if getattr(existing, "_advicematch_handler", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler._advicematch_handler = True
    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    return root
