# /flasharb/strategies/fee_tier.py
from flasharb.core.chain import checksum
from flasharb.core.codec import FeeTierArb
from flasharb.core.errors import ConfigurationError
from flasharb.core.logger import get_logger
from flasharb.core.state import AdminContext
from flasharb.strategies.base import AbstractStrategy

log = get_logger(__name__)


class FeeTierArbitrageStrategy(AbstractStrategy):
    """
    Same pair, two fee tiers on the concentrated venue: buy token_b where it is
    cheap, sell it back where it is dear. Which tier is which is decided by the
    caller; this class only executes the order it is given.
    """
    strategy_name = "fee_tier"

    def execute(self, asset: str, amount: int, fee: int, params: FeeTierArb, admin: AdminContext) -> int:
        if params.token_a != checksum(asset):
            raise ConfigurationError(f"Payload token_a {params.token_a} is not the borrowed asset {asset}")

        floor = self.required_output(amount, fee, params.min_profit)

        # No floor on the first leg; the round trip is checked on the second.
        received = self._swap_concentrated(asset, params.token_b, params.buy_fee, amount, 0)
        amount_out = self._swap_concentrated(params.token_b, asset, params.sell_fee, received, floor)

        log.info(
            "FEE_TIER_ARB_SWAPS_EXECUTED",
            asset=asset, token_b=params.token_b, buy_fee=params.buy_fee, sell_fee=params.sell_fee,
            amount_in=amount, intermediate=received, amount_out=amount_out, floor=floor,
        )
        return amount_out
