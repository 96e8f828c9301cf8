# /test/test_cross_protocol.py
import pytest

from support import CLASSIC_ROUTER, OWNER, SWAP_ROUTER, USDC, WETH
from flasharb.core.codec import CrossProtocolArb, encode_payload
from flasharb.core.errors import ConfigurationError, ProfitShortfallError


def test_buy_on_concentrated_sell_on_classic(world):
    """
    GIVEN WETH->USDC priced at 950 on the concentrated venue and USDC->WETH at 1010 on the classic router
    WHEN the cross-protocol arbitrage buys on the concentrated venue first
    THEN one swap lands on each venue and 10 WETH of profit is recorded.
    """
    world.swap_router.set_quote(WETH, USDC, 500, 950)
    world.classic_router.set_quote([USDC, WETH], 1010)

    result = world.executor.execute_cross_protocol_arbitrage(OWNER, WETH, 1000, USDC, 500, CLASSIC_ROUTER, True, 5)

    assert result.profit_realized == 10
    assert world.executor.get_stats() == (10, 1)
    assert [s["token_out"] for s in world.swap_router.swaps] == [USDC]
    assert [s["token_out"] for s in world.classic_router.swaps] == [WETH]


def test_buy_on_classic_sell_on_concentrated(world):
    world.classic_router.set_quote([WETH, USDC], 950)
    world.swap_router.set_quote(USDC, WETH, 500, 1020)

    result = world.executor.execute_cross_protocol_arbitrage(OWNER, WETH, 1000, USDC, 500, CLASSIC_ROUTER, False, 0)

    assert result.profit_realized == 20
    assert [s["token_out"] for s in world.classic_router.swaps] == [USDC]
    assert [s["token_out"] for s in world.swap_router.swaps] == [WETH]


def test_second_leg_floor_reverts_both_legs(world):
    world.swap_router.set_quote(WETH, USDC, 500, 950)
    world.classic_router.set_quote([USDC, WETH], 1004)
    before = world.balances()

    with pytest.raises(ProfitShortfallError, match="INSUFFICIENT_OUTPUT_AMOUNT"):
        world.executor.execute_cross_protocol_arbitrage(OWNER, WETH, 1000, USDC, 500, CLASSIC_ROUTER, True, 5)

    assert world.balances() == before
    assert world.executor.get_stats() == (0, 0)


def test_unapproved_router_fails_before_any_swap(world):
    """
    GIVEN the classic router has been removed from the approved set
    WHEN a cross-protocol arbitrage names it
    THEN the call fails with no loan taken and no swap attempted.
    """
    world.swap_router.set_quote(WETH, USDC, 500, 950)
    world.classic_router.set_quote([USDC, WETH], 1010)
    world.admin.set_router_approval(OWNER, CLASSIC_ROUTER, False)
    before = world.balances()

    with pytest.raises(ConfigurationError, match="not approved"):
        world.executor.execute_cross_protocol_arbitrage(OWNER, WETH, 1000, USDC, 500, CLASSIC_ROUTER, True, 0)

    assert world.swap_router.swaps == []
    assert world.classic_router.swaps == []
    assert world.balances() == before


def test_approved_address_must_be_a_classic_router(world):
    world.swap_router.set_quote(WETH, USDC, 500, 950)
    world.admin.set_router_approval(OWNER, SWAP_ROUTER, True)

    with pytest.raises(ConfigurationError, match="not a classic AMM router"):
        world.executor.execute_cross_protocol_arbitrage(OWNER, WETH, 1000, USDC, 500, SWAP_ROUTER, True, 0)
    assert world.swap_router.swaps == []


def test_raw_payload_naming_an_unapproved_router_is_refused_before_the_loan(world, monkeypatch):
    """
    GIVEN an encoded cross-protocol payload whose classic router is not approved
    WHEN it is submitted through the raw payload entry point
    THEN initiation rejects it and the lending pool is never asked for a loan.
    """
    requested = []
    monkeypatch.setattr(world.lending_pool, "request_loan", lambda *args: requested.append(args))
    world.admin.set_router_approval(OWNER, CLASSIC_ROUTER, False)
    payload = encode_payload(CrossProtocolArb(
        token_in=WETH,
        token_out=USDC,
        venue_a_fee=500,
        venue_b_router=CLASSIC_ROUTER,
        buy_on_concentrated=True,
        min_profit=0,
    ))

    with pytest.raises(ConfigurationError, match="not approved"):
        world.executor.execute_payload(OWNER, WETH, 1000, payload)
    assert requested == []
