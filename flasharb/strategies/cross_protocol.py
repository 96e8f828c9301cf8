# /flasharb/strategies/cross_protocol.py
from flasharb.adapters.dex import ClassicAmmRouter
from flasharb.core.chain import checksum
from flasharb.core.codec import CrossProtocolArb
from flasharb.core.errors import ConfigurationError
from flasharb.core.logger import get_logger
from flasharb.core.state import AdminContext
from flasharb.strategies.base import AbstractStrategy

log = get_logger(__name__)


class CrossProtocolArbitrageStrategy(AbstractStrategy):
    """
    Round trip between the concentrated-liquidity router and an approved
    classic AMM router. ``buy_on_concentrated`` picks the venue order:
    True buys token_out on the concentrated venue and sells on the classic one,
    False does the reverse.
    """
    strategy_name = "cross_protocol"

    def _classic_router(self, params: CrossProtocolArb, admin: AdminContext) -> ClassicAmmRouter:
        # Must hold before the first swap moves anything.
        if not admin.is_router_approved(params.venue_b_router):
            raise ConfigurationError(f"Router {params.venue_b_router} is not approved")
        router = self.chain.contract_at(params.venue_b_router)
        if not isinstance(router, ClassicAmmRouter):
            raise ConfigurationError(f"{params.venue_b_router} is not a classic AMM router")
        return router

    def execute(self, asset: str, amount: int, fee: int, params: CrossProtocolArb, admin: AdminContext) -> int:
        router = self._classic_router(params, admin)
        if params.token_in != checksum(asset):
            raise ConfigurationError(f"Payload token_in {params.token_in} is not the borrowed asset {asset}")

        floor = self.required_output(amount, fee, params.min_profit)
        token_out = params.token_out

        if params.buy_on_concentrated:
            received = self._swap_concentrated(asset, token_out, params.venue_a_fee, amount, 0)
            amount_out = self._swap_classic(router, [token_out, asset], received, floor)
        else:
            received = self._swap_classic(router, [asset, token_out], amount, 0)
            amount_out = self._swap_concentrated(token_out, asset, params.venue_a_fee, received, floor)

        log.info(
            "CROSS_PROTOCOL_ARB_SWAPS_EXECUTED",
            asset=asset, token_out=token_out, router=router.address,
            buy_on_concentrated=params.buy_on_concentrated,
            amount_in=amount, intermediate=received, amount_out=amount_out, floor=floor,
        )
        return amount_out
