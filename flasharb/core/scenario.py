# /flasharb/core/scenario.py
"""
Scenario files: a JSON description of a simulated world (funded accounts,
lending liquidity, venue pools, approved routers) and a list of
pre-computed opportunities to submit against it, in order.
"""
import json
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from flasharb.adapters.dex import ClassicAmmRouter, ConcentratedLiquidityRouter
from flasharb.adapters.lending import SimulatedLendingPool
from flasharb.core.chain import Chain, checksum
from flasharb.core.codec import CrossProtocolArb, FeeTierArb, StrategyParams, build_params
from flasharb.core.config import settings
from flasharb.core.errors import ConfigurationError, ExecutionError
from flasharb.core.executor import FlashArbExecutor
from flasharb.core.logger import get_logger
from flasharb.core.state import AdminContext, ExecutorState

log = get_logger(__name__)


class Funding(BaseModel):
    token: str
    holder: str
    amount: int = Field(ge=0)


class PoolSpec(BaseModel):
    venue: Literal["concentrated", "classic"]
    router: Optional[str] = None
    token_a: str
    token_b: str
    amount_a: int = Field(gt=0)
    amount_b: int = Field(gt=0)
    fee: int = 3000


class OpportunitySpec(BaseModel):
    strategy: Literal["fee_tier", "cross_protocol"]
    asset: str
    amount: int
    token_out: str
    min_profit: int = 0
    buy_fee: Optional[int] = None
    sell_fee: Optional[int] = None
    venue_a_fee: Optional[int] = None
    venue_b_router: Optional[str] = None
    buy_on_concentrated: bool = True

    def to_params(self) -> StrategyParams:
        if self.strategy == "fee_tier":
            if self.buy_fee is None or self.sell_fee is None:
                raise ConfigurationError("fee_tier opportunities need buy_fee and sell_fee")
            return build_params(
                FeeTierArb, token_a=self.asset, token_b=self.token_out,
                buy_fee=self.buy_fee, sell_fee=self.sell_fee, min_profit=self.min_profit,
            )
        if self.venue_a_fee is None or self.venue_b_router is None:
            raise ConfigurationError("cross_protocol opportunities need venue_a_fee and venue_b_router")
        return build_params(
            CrossProtocolArb, token_in=self.asset, token_out=self.token_out, venue_a_fee=self.venue_a_fee,
            venue_b_router=self.venue_b_router, buy_on_concentrated=self.buy_on_concentrated,
            min_profit=self.min_profit,
        )


class Scenario(BaseModel):
    timestamp: Optional[int] = None
    owner: str
    executor: str
    lending_pool: str
    swap_router: str
    premium_bps: int = Field(default_factory=lambda: settings.FLASH_LOAN_PREMIUM_BPS)
    classic_routers: List[str] = Field(default_factory=list)
    approved_routers: List[str] = Field(default_factory=list)
    funding: List[Funding] = Field(default_factory=list)
    pools: List[PoolSpec] = Field(default_factory=list)
    opportunities: List[OpportunitySpec] = Field(default_factory=list)


class Outcome(BaseModel):
    index: int
    strategy: str
    status: Literal["executed", "reverted"]
    profit: int = 0
    error_type: Optional[str] = None
    error: Optional[str] = None


def load_scenario(path: str) -> Scenario:
    with open(path, "r", encoding="utf-8") as f:
        return Scenario.model_validate(json.load(f))


class Simulation:
    """Builds the world a scenario describes and runs its opportunities one by one."""

    def __init__(self, scenario: Scenario, state: Optional[ExecutorState] = None):
        self.scenario = scenario
        self.chain = Chain(timestamp=scenario.timestamp)
        self.lending_pool = SimulatedLendingPool(self.chain, scenario.lending_pool, scenario.premium_bps)
        self.swap_router = ConcentratedLiquidityRouter(self.chain, scenario.swap_router)
        self.classic_routers: Dict[str, ClassicAmmRouter] = {}
        for address in scenario.classic_routers:
            router = ClassicAmmRouter(self.chain, address)
            self.classic_routers[router.address] = router

        for funding in scenario.funding:
            self.chain.mint(funding.token, funding.holder, funding.amount)

        for pool in scenario.pools:
            self._add_pool(pool)

        if state is None:
            state = ExecutorState(admin=AdminContext(
                owner=scenario.owner,
                lending_pool=self.lending_pool.address,
                approved_routers=scenario.approved_routers,
            ))
        self.executor = FlashArbExecutor(
            self.chain, scenario.executor, state.admin, self.swap_router, ledger=state.ledger,
        )

    def _add_pool(self, pool: PoolSpec):
        provider = self.scenario.owner
        if pool.venue == "concentrated":
            self.swap_router.add_liquidity(provider, pool.token_a, pool.token_b, pool.fee, pool.amount_a, pool.amount_b)
            return
        router = self.classic_routers.get(checksum(pool.router)) if pool.router else None
        if router is None:
            raise ConfigurationError(f"Classic pool references unknown router {pool.router}")
        router.add_liquidity(provider, pool.token_a, pool.token_b, pool.amount_a, pool.amount_b)

    def run(self) -> List[Outcome]:
        outcomes = []
        for index, opportunity in enumerate(self.scenario.opportunities):
            try:
                result = self.executor.execute(
                    self.scenario.owner, opportunity.asset, opportunity.amount, opportunity.to_params(),
                )
                outcomes.append(Outcome(
                    index=index, strategy=opportunity.strategy, status="executed", profit=result.profit_realized,
                ))
            except ExecutionError as e:
                log.warning("OPPORTUNITY_REVERTED", index=index, strategy=opportunity.strategy, error=str(e))
                outcomes.append(Outcome(
                    index=index, strategy=opportunity.strategy, status="reverted",
                    error_type=type(e).__name__, error=str(e),
                ))
        total_profits, total_arbitrages = self.executor.get_stats()
        log.info("SCENARIO_COMPLETE", opportunities=len(outcomes), total_profits=total_profits, total_arbitrages=total_arbitrages)
        return outcomes
