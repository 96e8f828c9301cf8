# /flasharb/core/state.py
# Frozen models for the executor's long-lived state. Updates always return a
# new object, so a snapshot is just a reference to the previous one.
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flasharb.core.chain import checksum
from flasharb.core.logger import get_logger

log = get_logger(__name__)


class ExecutionPhase(str, Enum):
    IDLE = "IDLE"
    LOAN_REQUESTED = "LOAN_REQUESTED"
    CALLBACK_RECEIVED = "CALLBACK_RECEIVED"
    AUTHENTICATED = "AUTHENTICATED"
    STRATEGY_DISPATCHED = "STRATEGY_DISPATCHED"
    SWAPS_EXECUTED = "SWAPS_EXECUTED"
    REPAID = "REPAID"
    RECORDED = "RECORDED"


class ExecutionResult(BaseModel):
    """Immutable record emitted once per committed flash arbitrage, stamped with chain time."""
    model_config = ConfigDict(frozen=True)

    asset: str
    amount_borrowed: int
    fee: int
    profit_realized: int
    strategy_tag: int
    timestamp: datetime


# Recent results kept on the ledger; the counters cover every execution.
HISTORY_LIMIT = 100


class AccountingLedger(BaseModel):
    """Cumulative counters. Only ever grow, and only from committed executions."""
    model_config = ConfigDict(frozen=True)

    total_profits: int = 0
    total_arbitrages: int = 0
    profits_by_asset: Dict[str, int] = Field(default_factory=dict)
    history: List[ExecutionResult] = Field(default_factory=list)

    def record(self, result: ExecutionResult) -> "AccountingLedger":
        by_asset = dict(self.profits_by_asset)
        by_asset[result.asset] = by_asset.get(result.asset, 0) + result.profit_realized
        return self.model_copy(update={
            "total_profits": self.total_profits + result.profit_realized,
            "total_arbitrages": self.total_arbitrages + 1,
            "profits_by_asset": by_asset,
            "history": (self.history + [result])[-HISTORY_LIMIT:],
        })


class AdminContext(BaseModel):
    """
    Privileged configuration the core receives as input: owner identity,
    trusted lending facility, pause flag and the venue registry
    (approved classic-AMM routers).
    """
    model_config = ConfigDict(frozen=True)

    owner: str
    lending_pool: str
    paused: bool = False
    approved_routers: FrozenSet[str] = frozenset()

    @field_validator("owner", "lending_pool")
    @classmethod
    def _checksum_address(cls, value: str) -> str:
        return checksum(value)

    @field_validator("approved_routers", mode="before")
    @classmethod
    def _checksum_routers(cls, value):
        return frozenset(checksum(r) for r in value)

    def is_router_approved(self, router: str) -> bool:
        return checksum(router) in self.approved_routers

    def with_router_approval(self, router: str, approved: bool) -> "AdminContext":
        router = checksum(router)
        routers = self.approved_routers | {router} if approved else self.approved_routers - {router}
        return self.model_copy(update={"approved_routers": frozenset(routers)})


class ExecutorState(BaseModel):
    """The part of the executor that persists across executions."""
    model_config = ConfigDict(frozen=True)

    admin: AdminContext
    ledger: AccountingLedger = Field(default_factory=AccountingLedger)
