# /flasharb/core/config_validator.py
# Run before live submission to validate on-chain configuration and secrets.
from web3 import Web3

from flasharb.core.config import settings
from flasharb.core.errors import ConfigurationError
from flasharb.core.logger import log


def validate(live: bool = True):
    log.info("--- CONFIG VALIDATION START ---")
    errors = []

    if live:
        for var in ("EXECUTOR_PRIVATE_KEY", "ETH_RPC_URL_1", "EXECUTOR_CONTRACT_ADDRESS"):
            if not getattr(settings, var, None):
                errors.append(f"Missing required configuration: {var}")

    for var in ("LENDING_POOL_ADDRESS", "SWAP_ROUTER_ADDRESS", "EXECUTOR_CONTRACT_ADDRESS"):
        value = getattr(settings, var, None)
        if value and not Web3.is_address(value):
            errors.append(f"{var} is not a valid address: {value}")

    if not 0 <= settings.FLASH_LOAN_PREMIUM_BPS <= 10_000:
        errors.append("FLASH_LOAN_PREMIUM_BPS must be between 0 and 10000")

    if errors:
        for error in errors:
            log.critical(error)
        raise ConfigurationError("System configuration is incomplete. Halting.")

    log.info("--- CONFIG VALIDATION PASSED ---")


if __name__ == "__main__":
    validate()
