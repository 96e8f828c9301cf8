# /flasharb/core/tx.py
# Signs and broadcasts transactions to the deployed executor contract.
from typing import Any, Dict

from eth_account import Account
from web3 import Web3

from flasharb.core.config import settings
from flasharb.core.decorators import retriable_network_call
from flasharb.core.errors import ConfigurationError
from flasharb.core.logger import get_logger

log = get_logger(__name__)


class TransactionManager:
    """Builds, signs and sends EIP-1559 transactions from the executor owner account."""
    def __init__(self, w3: Web3 | None = None, private_key: str | None = None):
        if w3 is None:
            if not settings.ETH_RPC_URL:
                raise ConfigurationError("ETH_RPC_URL_1 is not configured")
            w3 = Web3(Web3.HTTPProvider(settings.ETH_RPC_URL, request_kwargs={"timeout": 10}))
        if private_key is None:
            if settings.EXECUTOR_PRIVATE_KEY is None:
                raise ConfigurationError("EXECUTOR_PRIVATE_KEY is not configured")
            private_key = settings.EXECUTOR_PRIVATE_KEY.get_secret_value()
        self.w3 = w3
        self.account = Account.from_key(private_key)
        self.address = self.account.address
        log.info("TRANSACTION_MANAGER_INITIALIZED", address=self.address, chain_id=settings.chain_id)

    @retriable_network_call
    def get_nonce(self) -> int:
        return self.w3.eth.get_transaction_count(self.address, "pending")

    @retriable_network_call
    def estimate_fees(self) -> Dict[str, int]:
        base_fee = self.w3.eth.get_block("latest")["baseFeePerGas"]
        priority_fee = self.w3.eth.max_priority_fee
        return {"maxFeePerGas": base_fee * 2 + priority_fee, "maxPriorityFeePerGas": priority_fee}

    @retriable_network_call
    def estimate_gas(self, tx_params: Dict[str, Any]) -> int:
        return self.w3.eth.estimate_gas(tx_params)

    def build_and_send_transaction(self, tx_params: Dict[str, Any]) -> str:
        full_tx_params = {
            "from": self.address,
            "nonce": self.get_nonce(),
            "chainId": settings.chain_id,
            **tx_params,
        }
        if "maxFeePerGas" not in full_tx_params:
            full_tx_params.update(self.estimate_fees())
        # A revert inside the atomic execution surfaces here, before anything is signed.
        if "gas" not in full_tx_params:
            full_tx_params["gas"] = self.estimate_gas(full_tx_params)

        try:
            signed_tx = self.account.sign_transaction(full_tx_params)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Exception as e:
            log.error("TRANSACTION_FAILURE", nonce=full_tx_params["nonce"], error=str(e), exc_info=True)
            raise
        tx_hash_hex = Web3.to_hex(tx_hash)
        log.info("TRANSACTION_BROADCASTED", tx_hash=tx_hash_hex, nonce=full_tx_params["nonce"])
        return tx_hash_hex
