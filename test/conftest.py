# /test/conftest.py
# Shared fixtures: a simulated world with a zero-premium lending pool,
# fixed-quote venues and a deployed executor owned by OWNER.
from dataclasses import dataclass

import pytest

from flasharb.adapters.lending import SimulatedLendingPool
from flasharb.adapters.mock import MockClassicRouter, MockConcentratedRouter
from flasharb.core.admin import ExecutorAdmin
from flasharb.core.chain import Chain
from flasharb.core.executor import FlashArbExecutor
from flasharb.core.state import AdminContext

from support import CLASSIC_ROUTER, EXECUTOR, LENDING_POOL, NOW, OWNER, POOL_LIQUIDITY, SWAP_ROUTER, USDC, VENUE_INVENTORY, WETH


@dataclass
class World:
    chain: Chain
    lending_pool: SimulatedLendingPool
    swap_router: MockConcentratedRouter
    classic_router: MockClassicRouter
    executor: FlashArbExecutor
    admin: ExecutorAdmin

    def balances(self) -> dict:
        holders = {
            "executor": self.executor.address,
            "lending_pool": self.lending_pool.address,
            "swap_router": self.swap_router.address,
            "classic_router": self.classic_router.address,
        }
        return {
            (name, token): self.chain.balance_of(token, address)
            for name, address in holders.items()
            for token in (WETH, USDC)
        }


@pytest.fixture(autouse=True)
def audit_log(tmp_path, monkeypatch):
    path = tmp_path / "audit.log"
    monkeypatch.setattr("flasharb.core.logger.AUDIT_FILE", path)
    return path


@pytest.fixture
def make_world():
    def _make(premium_bps: int = 0) -> World:
        chain = Chain(timestamp=NOW)
        lending_pool = SimulatedLendingPool(chain, LENDING_POOL, premium_bps=premium_bps)
        chain.mint(WETH, lending_pool.address, POOL_LIQUIDITY)

        swap_router = MockConcentratedRouter(chain, SWAP_ROUTER)
        classic_router = MockClassicRouter(chain, CLASSIC_ROUTER)
        for router in (swap_router, classic_router):
            chain.mint(WETH, router.address, VENUE_INVENTORY)
            chain.mint(USDC, router.address, VENUE_INVENTORY)

        admin = AdminContext(owner=OWNER, lending_pool=LENDING_POOL, approved_routers={CLASSIC_ROUTER})
        executor = FlashArbExecutor(chain, EXECUTOR, admin, swap_router)
        return World(chain, lending_pool, swap_router, classic_router, executor, ExecutorAdmin(executor))

    return _make


@pytest.fixture
def world(make_world) -> World:
    return make_world()
