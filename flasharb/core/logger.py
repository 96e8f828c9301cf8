# /flasharb/core/logger.py
import hashlib
import hmac
import json
import logging
import os

import sentry_sdk
import structlog
from prometheus_client import Counter
from structlog.contextvars import bind_contextvars, unbind_contextvars

from flasharb.core.config import settings

# --- Prometheus Metrics ---
ARBITRAGES_EXECUTED = Counter("flasharb_arbitrages_executed_total", "Flash arbitrages committed", ["strategy"])
EXECUTIONS_REVERTED = Counter("flasharb_executions_reverted_total", "Atomic units rolled back", ["error"])
PROFIT_REALIZED = Counter("flasharb_profit_realized_total", "Realized profit in base units", ["asset"])
SNAPSHOTS_TAKEN = Counter("flasharb_snapshots_taken_total", "Executor state snapshots written")
ADMIN_ACTIONS = Counter("flasharb_admin_actions_total", "Owner-gated admin operations", ["action"])

SIGNING_KEY = (
    settings.LOG_SIGNING_KEY.get_secret_value().encode()
    if settings.LOG_SIGNING_KEY
    else b"insecure"
)

AUDIT_FILE = os.path.join(settings.SESSION_DIR, "audit.log")


def sign_and_append(logger, method_name: str, event_dict: dict) -> dict:
    """Structlog processor that signs each event and appends it to the audit log.

    Each line is ``<json payload>|<hex HMAC-SHA256>`` so the trail of
    executions and admin actions can be verified offline with the signing key.
    """
    payload = json.dumps(event_dict, sort_keys=True, default=str)
    sig = hmac.new(SIGNING_KEY, payload.encode(), hashlib.sha256).hexdigest()

    # AUDIT_FILE is looked up at call time so tests can monkeypatch it.
    audit_file = str(AUDIT_FILE)
    os.makedirs(os.path.dirname(audit_file), exist_ok=True)
    with open(audit_file, "a", encoding="utf-8") as f:
        f.write(payload + "|" + sig + "\n")

    event_dict["signature"] = sig
    return event_dict


def configure_logging():
    if settings.SENTRY_DSN:
        sentry_sdk.init(dsn=settings.SENTRY_DSN.get_secret_value(), traces_sample_rate=1.0)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            sign_and_append,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(settings.LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)


def bind_execution(execution_id: str):
    bind_contextvars(execution_id=execution_id)


def unbind_execution():
    unbind_contextvars("execution_id")


configure_logging()
log = get_logger("flasharb.system")
