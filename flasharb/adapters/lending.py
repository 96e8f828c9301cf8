# /flasharb/adapters/lending.py
# Simulated flash-loan facility (Aave V3 style): lends, calls back into the
# recipient, and refuses to return unless principal plus premium came back.
from typing import List

from flasharb.core.chain import Chain, checksum
from flasharb.core.errors import ConfigurationError, RepaymentShortfallError
from flasharb.core.logger import get_logger

log = get_logger(__name__)

BPS_DENOMINATOR = 10_000


class SimulatedLendingPool:
    def __init__(self, chain: Chain, address: str, premium_bps: int = 5):
        if premium_bps < 0:
            raise ConfigurationError("Flash loan premium cannot be negative")
        self.chain = chain
        self.address = chain.deploy(address, self)
        self.premium_bps = premium_bps

    def flash_loan_fee(self, amount: int) -> int:
        """Premium rounded half up, as Aave's percentMul does."""
        return (amount * self.premium_bps + BPS_DENOMINATOR // 2) // BPS_DENOMINATOR

    def available_liquidity(self, asset: str) -> int:
        return self.chain.balance_of(asset, self.address)

    def request_loan(self, caller: str, recipient: str, assets: List[str], amounts: List[int], payload: bytes):
        if len(assets) != len(amounts) or not assets:
            raise ConfigurationError("assets and amounts must be non-empty and of equal length")
        if any(amount <= 0 for amount in amounts):
            raise ConfigurationError("Flash loan amount must be greater than zero")

        assets = [checksum(a) for a in assets]
        fees = [self.flash_loan_fee(amount) for amount in amounts]

        with self.chain.atomic("flash_loan"):
            expected = {}
            for asset, amount, fee in zip(assets, amounts, fees):
                expected[asset] = expected.get(asset, self.chain.balance_of(asset, self.address)) + fee
                self.chain.transfer(asset, self.address, recipient, amount)
            log.info("FLASH_LOAN_ISSUED", recipient=recipient, assets=assets, amounts=amounts, fees=fees)

            receiver = self.chain.contract_at(recipient)
            if not receiver.on_loan_received(self.address, assets, amounts, fees, checksum(caller), payload):
                raise RepaymentShortfallError("Invalid flash loan executor return")

            for asset, required in expected.items():
                balance = self.chain.balance_of(asset, self.address)
                if balance < required:
                    raise RepaymentShortfallError(
                        f"Flash loan of {asset} not repaid: pool holds {balance}, requires {required}"
                    )
            log.info("FLASH_LOAN_REPAID", recipient=recipient, assets=assets)
