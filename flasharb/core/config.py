# /flasharb/core/config.py
import sys
from typing import List

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Executor account used for live submission
    EXECUTOR_PRIVATE_KEY: SecretStr | None = None

    # RPC endpoints
    ETH_RPC_URL_1: SecretStr | None = None
    rpc_urls: List[str] = []
    chain_id: int = 42161

    # Deployed contracts (Arbitrum One defaults)
    EXECUTOR_CONTRACT_ADDRESS: str | None = None
    LENDING_POOL_ADDRESS: str = "0x794a61358D6845594F94dc1DB02A252b5b4814aD"
    SWAP_ROUTER_ADDRESS: str = "0xE592427A0AEce92De3Edee1F18E0157C05861564"

    # Flash loan premium in basis points (Aave V3: 0.05%)
    FLASH_LOAN_PREMIUM_BPS: int = 5

    # Operational Settings
    LOG_LEVEL: str = "INFO"
    LOG_SIGNING_KEY: SecretStr | None = None
    SENTRY_DSN: SecretStr | None = None
    SESSION_DIR: str = "/tmp/flasharb_session"
    CONTROL_API_TOKEN: str | None = None
    API_PORT: int = 8080

    # GCP (optional snapshot backend)
    GCP_PROJECT_ID: str | None = None
    GCP_REGION: str | None = None

    @property
    def ETH_RPC_URL(self) -> str | None:  # noqa: N802
        """Primary RPC URL: *ETH_RPC_URL_1* first, then the first entry of *rpc_urls*."""
        if self.ETH_RPC_URL_1 is not None:
            return self.ETH_RPC_URL_1.get_secret_value()
        if self.rpc_urls:
            return self.rpc_urls[0]
        return None


try:
    settings = Settings()
except Exception as e:
    # Late import to avoid circular dependency only for logging the failure
    try:
        from flasharb.core.logger import get_logger, configure_logging
        configure_logging()
        log = get_logger("flasharb.config")
        log.critical("FAILED_TO_LOAD_SETTINGS", error=str(e))
    except Exception:
        print("FAILED_TO_LOAD_SETTINGS", e)
    sys.exit(1)
