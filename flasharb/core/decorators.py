# /flasharb/core/decorators.py
# Reusable decorators for operational resilience.
import logging

from tenacity import before_sleep_log, retry, stop_after_attempt, wait_exponential

from flasharb.core.logger import get_logger

log = get_logger(__name__)

# Read-only RPC calls only: retrying a broadcast could send it twice.
retriable_network_call = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    before_sleep=before_sleep_log(log, logging.WARNING),
    reraise=True,
)
