# /flasharb/adapters/flashloan.py
# - Client for the deployed FlashArbExecutor contract.
# - Submits pre-computed opportunities; the contract runs borrow, swaps and repay atomically.
# - Mirrors the local input checks so obviously invalid requests never cost gas.
from typing import Any, Dict

from web3 import Web3
from web3.contract import Contract

from flasharb.abis import ERC20_ABI, FLASH_ARB_EXECUTOR_ABI
from flasharb.core.codec import CrossProtocolArb, FeeTierArb
from flasharb.core.decorators import retriable_network_call
from flasharb.core.errors import ConfigurationError
from flasharb.core.logger import get_logger
from flasharb.core.tx import TransactionManager

log = get_logger(__name__)


class FlashArbContractClient:
    """
    Adapter for interacting with the deployed executor contract.
    Strategies hand it the same parameters the local simulator takes.
    """
    def __init__(self, tx_manager: TransactionManager, executor_address: str):
        self.tx_manager = tx_manager
        self.w3: Web3 = tx_manager.w3
        self.executor_address = Web3.to_checksum_address(executor_address)
        self.contract: Contract = self.w3.eth.contract(address=self.executor_address, abi=FLASH_ARB_EXECUTOR_ABI)
        log.info("FLASH_ARB_CLIENT_INITIALIZED", executor_address=self.executor_address)

    def _send(self, function_call) -> str:
        tx_params = {
            "to": self.executor_address,
            "data": function_call._encode_transaction_data(),
            "value": 0,
        }
        return self.tx_manager.build_and_send_transaction(tx_params)

    @staticmethod
    def _require_amount(amount: int):
        if amount <= 0:
            raise ConfigurationError("Amount must be greater than 0")

    def submit_fee_tier_arbitrage(self, asset: str, amount: int, params: FeeTierArb) -> str:
        self._require_amount(amount)
        log.info("FEE_TIER_ARB_SUBMITTED", asset=asset, amount=amount, params=params.model_dump())
        return self._send(self.contract.functions.executeFeeTierArbitrage(
            Web3.to_checksum_address(asset),
            amount,
            params.token_b,
            params.buy_fee,
            params.sell_fee,
            params.min_profit,
        ))

    def submit_cross_protocol_arbitrage(self, asset: str, amount: int, params: CrossProtocolArb) -> str:
        self._require_amount(amount)
        if not self.is_router_approved(params.venue_b_router):
            raise ConfigurationError(f"Router {params.venue_b_router} is not approved on-chain")
        log.info("CROSS_PROTOCOL_ARB_SUBMITTED", asset=asset, amount=amount, params=params.model_dump())
        return self._send(self.contract.functions.executeCrossProtocolArbitrage(
            Web3.to_checksum_address(asset),
            amount,
            params.token_out,
            params.venue_a_fee,
            params.venue_b_router,
            params.buy_on_concentrated,
            params.min_profit,
        ))

    @retriable_network_call
    def is_router_approved(self, router: str) -> bool:
        return self.contract.functions.approvedRouters(Web3.to_checksum_address(router)).call()

    @retriable_network_call
    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_profits": self.contract.functions.totalProfits().call(),
            "total_arbitrages": self.contract.functions.totalArbitrages().call(),
            "paused": self.contract.functions.paused().call(),
        }

    @retriable_network_call
    def token_balance(self, token: str) -> int:
        erc20 = self.w3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)
        balance = erc20.functions.balanceOf(self.executor_address).call()
        log.info("EXECUTOR_TOKEN_BALANCE", token=token, balance=balance)
        return balance
