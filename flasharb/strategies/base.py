# /flasharb/strategies/base.py
# - Defines the AbstractStrategy interface every flash-arbitrage shape implements.
# - Shared swap helpers: exact approvals and "now" deadlines.
from typing import List

from flasharb.adapters.dex import ClassicAmmRouter, ConcentratedLiquidityRouter, ExactInputSingleParams
from flasharb.core.chain import Chain
from flasharb.core.state import AdminContext


class AbstractStrategy:
    """
    A strategy executor runs inside the flash loan callback. It receives the
    borrowed asset, amount and facility fee plus its decoded parameters, and
    must either leave the executor holding at least
    ``amount + fee + params.min_profit`` of the asset or raise.
    Swap failures are never caught here.
    """
    strategy_name = "abstract"

    def __init__(self, chain: Chain, executor_address: str, swap_router: ConcentratedLiquidityRouter):
        self.chain = chain
        self.executor_address = executor_address
        self.swap_router = swap_router

    def execute(self, asset: str, amount: int, fee: int, params, admin: AdminContext) -> int:
        """Runs the swap sequence and returns the final output in ``asset``."""
        raise NotImplementedError

    @staticmethod
    def required_output(amount: int, fee: int, min_profit: int) -> int:
        return amount + fee + min_profit

    def _deadline(self) -> int:
        return self.chain.timestamp

    def _swap_concentrated(self, token_in: str, token_out: str, fee_tier: int, amount_in: int, min_out: int) -> int:
        self.chain.approve(token_in, self.executor_address, self.swap_router.address, amount_in)
        return self.swap_router.exact_input_single(
            self.executor_address,
            ExactInputSingleParams(
                token_in=token_in,
                token_out=token_out,
                fee=fee_tier,
                recipient=self.executor_address,
                deadline=self._deadline(),
                amount_in=amount_in,
                amount_out_minimum=min_out,
            ),
        )

    def _swap_classic(self, router: ClassicAmmRouter, path: List[str], amount_in: int, min_out: int) -> int:
        self.chain.approve(path[0], self.executor_address, router.address, amount_in)
        amounts = router.swap_exact_tokens_for_tokens(
            self.executor_address, amount_in, min_out, path, self.executor_address, self._deadline()
        )
        return amounts[-1]
