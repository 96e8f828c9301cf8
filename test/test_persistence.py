# /test/test_persistence.py
import os

import pytest

from support import CLASSIC_ROUTER, OWNER, USDC, WETH
from flasharb.core import persistence


@pytest.mark.asyncio
async def test_snapshot_roundtrip(tmp_path, monkeypatch, world):
    monkeypatch.setattr(persistence, "SNAPSHOT_DIR", tmp_path)
    world.swap_router.set_quote(WETH, USDC, 500, 950)
    world.swap_router.set_quote(USDC, WETH, 3000, 1010)
    world.executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)

    path = await persistence.save_snapshot(world.executor.state)
    assert os.path.exists(path)

    loaded = await persistence.load_snapshot(path)
    assert loaded == world.executor.state
    assert loaded.ledger.total_profits == 10
    assert loaded.admin.is_router_approved(CLASSIC_ROUTER)


@pytest.mark.asyncio
async def test_latest_snapshot_is_tracked(tmp_path, monkeypatch, world):
    monkeypatch.setattr(persistence, "SNAPSHOT_DIR", tmp_path)
    assert await persistence.get_last_snapshot_path() is None
    assert await persistence.load_latest_snapshot() is None

    await persistence.save_snapshot(world.executor.state)
    world.admin.pause(OWNER)
    second = await persistence.save_snapshot(world.executor.state)

    assert await persistence.get_last_snapshot_path() == second
    latest = await persistence.load_latest_snapshot()
    assert latest.admin.paused is True


@pytest.mark.asyncio
async def test_restored_state_resumes_the_ledger(tmp_path, monkeypatch, make_world):
    monkeypatch.setattr(persistence, "SNAPSHOT_DIR", tmp_path)
    first = make_world()
    first.swap_router.set_quote(WETH, USDC, 500, 950)
    first.swap_router.set_quote(USDC, WETH, 3000, 1010)
    first.executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)
    path = await persistence.save_snapshot(first.executor.state)

    second = make_world()
    second.executor.load_state(await persistence.load_snapshot(path))
    second.swap_router.set_quote(WETH, USDC, 500, 950)
    second.swap_router.set_quote(USDC, WETH, 3000, 1005)
    second.executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)

    assert second.executor.get_stats() == (15, 2)
