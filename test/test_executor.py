# /test/test_executor.py
# Loan initiation preconditions, callback authentication, dispatch and reentrancy.
import pytest
from eth_abi import encode

from support import EXECUTOR, LENDING_POOL, OWNER, STRANGER, USDC, WETH
from flasharb.core.codec import FeeTierArb, encode_payload
from flasharb.core.errors import (
    AuthorizationError,
    ConfigurationError,
    DecodingError,
    InsufficientBalanceError,
    ReentrancyError,
    SystemPausedError,
)
from flasharb.core.state import ExecutionPhase


@pytest.fixture
def profitable(world):
    world.swap_router.set_quote(WETH, USDC, 500, 950)
    world.swap_router.set_quote(USDC, WETH, 3000, 1010)
    return world


def _fee_tier_payload() -> bytes:
    return encode_payload(FeeTierArb(token_a=WETH, token_b=USDC, buy_fee=500, sell_fee=3000, min_profit=0))


# --- Loan initiation ---

def test_only_owner_can_initiate(profitable):
    with pytest.raises(AuthorizationError):
        profitable.executor.execute_fee_tier_arbitrage(STRANGER, WETH, 1000, USDC, 500, 3000, 0)
    assert profitable.swap_router.swaps == []


def test_owner_check_comes_before_amount_check(profitable):
    with pytest.raises(AuthorizationError):
        profitable.executor.execute_fee_tier_arbitrage(STRANGER, WETH, 0, USDC, 500, 3000, 0)


def test_zero_amount_is_rejected(profitable):
    with pytest.raises(ConfigurationError, match="greater than 0"):
        profitable.executor.execute_fee_tier_arbitrage(OWNER, WETH, 0, USDC, 500, 3000, 0)


def test_paused_executor_rejects_everything(profitable):
    profitable.admin.pause(OWNER)
    with pytest.raises(SystemPausedError):
        profitable.executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)

    profitable.admin.unpause(OWNER)
    profitable.executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)
    assert profitable.executor.get_stats() == (10, 1)


def test_loan_larger_than_pool_liquidity_reverts(profitable):
    before = profitable.balances()
    with pytest.raises(InsufficientBalanceError):
        profitable.executor.execute_fee_tier_arbitrage(OWNER, WETH, 2_000_000, USDC, 500, 3000, 0)
    assert profitable.balances() == before


def test_invalid_parameters_are_configuration_errors(profitable):
    with pytest.raises(ConfigurationError):
        profitable.executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, -1)


# --- Callback authentication ---

@pytest.mark.parametrize("payload", [b"", b"\xff" * 64, _fee_tier_payload()])
def test_callback_from_anyone_but_the_pool_is_rejected(profitable, payload):
    """
    GIVEN an attacker who calls the callback directly
    WHEN the caller is not the lending pool
    THEN it fails with AuthorizationError whatever the payload.
    """
    profitable.chain.mint(WETH, EXECUTOR, 500)
    with pytest.raises(AuthorizationError, match="not the lending pool"):
        profitable.executor.on_loan_received(STRANGER, [WETH], [1000], [0], EXECUTOR, payload)
    assert profitable.executor.get_balance(WETH) == 500
    assert profitable.swap_router.swaps == []


def test_callback_spoofing_the_pool_without_a_loan_is_rejected(profitable):
    with pytest.raises(AuthorizationError, match="No flash loan in flight"):
        profitable.executor.on_loan_received(LENDING_POOL, [WETH], [1000], [0], EXECUTOR, _fee_tier_payload())
    assert profitable.executor.phase is ExecutionPhase.IDLE


def test_loan_initiated_by_someone_else_is_rejected(profitable):
    """A third party borrowing from the real pool and naming the executor as recipient."""
    profitable.chain.mint(WETH, EXECUTOR, 500)
    with pytest.raises(AuthorizationError, match="not initiated by this executor"):
        profitable.lending_pool.request_loan(STRANGER, EXECUTOR, [WETH], [1000], _fee_tier_payload())
    assert profitable.executor.get_balance(WETH) == 500
    assert profitable.lending_pool.available_liquidity(WETH) == 1_000_000


# --- Dispatch ---

def test_unknown_strategy_tag_aborts_before_repayment(profitable):
    """
    GIVEN a payload whose tag is neither 1 nor 2
    WHEN it is submitted through the raw payload entry point
    THEN it fails with DecodingError before any loan, swap, repayment or record.
    """
    before = profitable.balances()
    with pytest.raises(DecodingError, match="Unknown strategy tag"):
        profitable.executor.execute_payload(OWNER, WETH, 1000, encode(["uint8", "uint256"], [3, 0]))
    assert profitable.swap_router.swaps == []
    assert profitable.balances() == before
    assert profitable.executor.get_stats() == (0, 0)


def test_raw_payload_entry_point_executes_valid_payloads(profitable):
    result = profitable.executor.execute_payload(OWNER, WETH, 1000, _fee_tier_payload())
    assert result.profit_realized == 10


# --- Reentrancy ---

def test_reentrant_execution_reverts_the_outer_unit(profitable):
    """
    GIVEN a venue that calls back into the executor after settling a swap
    WHEN the executor is mid-execution
    THEN the nested call is rejected and the whole outer unit reverts.
    """
    executor = profitable.executor

    def reenter(*_):
        executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)

    profitable.swap_router.on_swap = reenter
    before = profitable.balances()

    with pytest.raises(ReentrancyError):
        executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)

    assert profitable.balances() == before
    assert executor.get_stats() == (0, 0)
    assert not executor.guard.entered
    assert executor.phase is ExecutionPhase.IDLE

    profitable.swap_router.on_swap = None
    executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)
    assert executor.get_stats() == (10, 1)


def test_rejected_reentry_does_not_double_count(profitable):
    executor = profitable.executor
    rejected = []

    def reenter(*_):
        try:
            executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)
        except ReentrancyError as e:
            rejected.append(e)

    profitable.swap_router.on_swap = reenter
    executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)

    assert len(rejected) == 2
    assert executor.get_stats() == (10, 1)
    assert executor.get_balance(WETH) == 10


def test_caught_foreign_loan_leaves_no_trace_in_the_committed_run(profitable):
    """
    GIVEN a venue hook that requests a USDC loan for the executor on a stranger's behalf
    WHEN the callback rejects it and the hook swallows the error
    THEN the outer arbitrage commits but the pool keeps its USDC.
    """
    profitable.chain.mint(USDC, profitable.lending_pool.address, 5000)
    rejected = []

    def foreign_loan(*_):
        try:
            profitable.lending_pool.request_loan(STRANGER, EXECUTOR, [USDC], [1000], _fee_tier_payload())
        except AuthorizationError as e:
            rejected.append(e)

    profitable.swap_router.on_swap = foreign_loan
    result = profitable.executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)

    assert len(rejected) == 2
    assert result.profit_realized == 10
    assert profitable.lending_pool.available_liquidity(USDC) == 5000
    assert profitable.executor.get_balance(USDC) == 0
    assert profitable.executor.get_stats() == (10, 1)


def test_admin_actions_are_blocked_mid_execution(profitable):
    errors = []

    def pause_mid_flight(*_):
        try:
            profitable.admin.pause(OWNER)
        except ReentrancyError as e:
            errors.append(e)

    profitable.swap_router.on_swap = pause_mid_flight
    profitable.executor.execute_fee_tier_arbitrage(OWNER, WETH, 1000, USDC, 500, 3000, 0)
    assert len(errors) == 2
    assert profitable.executor.admin.paused is False
