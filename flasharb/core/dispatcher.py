# /flasharb/core/dispatcher.py
from typing import Dict, Tuple, Type

from flasharb.adapters.dex import ConcentratedLiquidityRouter
from flasharb.core.chain import Chain
from flasharb.core.codec import StrategyParams, StrategyTag, decode_payload
from flasharb.core.errors import DecodingError
from flasharb.core.logger import get_logger
from flasharb.strategies.base import AbstractStrategy
from flasharb.strategies.cross_protocol import CrossProtocolArbitrageStrategy
from flasharb.strategies.fee_tier import FeeTierArbitrageStrategy

log = get_logger(__name__)

STRATEGY_EXECUTORS: Dict[StrategyTag, Type[AbstractStrategy]] = {
    StrategyTag.FEE_TIER: FeeTierArbitrageStrategy,
    StrategyTag.CROSS_PROTOCOL: CrossProtocolArbitrageStrategy,
}


class StrategyDispatcher:
    """Decodes a payload once and maps its tag to exactly one strategy executor."""

    def __init__(self, chain: Chain, executor_address: str, swap_router: ConcentratedLiquidityRouter):
        self.executors: Dict[int, AbstractStrategy] = {
            int(tag): executor_cls(chain, executor_address, swap_router)
            for tag, executor_cls in STRATEGY_EXECUTORS.items()
        }

    def resolve(self, payload: bytes) -> Tuple[StrategyParams, AbstractStrategy]:
        params = decode_payload(payload)
        strategy = self.executors.get(int(params.TAG))
        if strategy is None:
            raise DecodingError(f"No executor registered for strategy tag {int(params.TAG)}")
        log.debug("STRATEGY_DISPATCHED", tag=int(params.TAG), strategy=strategy.strategy_name)
        return params, strategy
