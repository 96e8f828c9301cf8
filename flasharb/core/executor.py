# /flasharb/core/executor.py
"""
The flash-arbitrage executor contract.

One call to ``execute*`` is one indivisible unit of work::

    Idle -> LoanRequested -> CallbackReceived -> Authenticated
         -> StrategyDispatched -> SwapsExecuted -> Repaid -> Recorded

The loan request, the facility's transfer, the callback, every swap, the
repayment and the ledger update all happen inside a single ``Chain.atomic``
block. Any exception at any phase puts every balance and the ledger back to
where they were before the call and propagates to the caller.
"""
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from flasharb.adapters.dex import ConcentratedLiquidityRouter
from flasharb.core.chain import Chain, checksum
from flasharb.core.codec import (
    CrossProtocolArb,
    FeeTierArb,
    StrategyParams,
    StrategyTag,
    build_params,
    decode_payload,
    encode_payload,
)
from flasharb.core.dispatcher import StrategyDispatcher
from flasharb.core.errors import (
    AuthorizationError,
    ConfigurationError,
    ExecutionError,
    ProfitShortfallError,
    SystemPausedError,
)
from flasharb.core.guard import ReentrancyGuard
from flasharb.core.logger import (
    ARBITRAGES_EXECUTED,
    PROFIT_REALIZED,
    bind_execution,
    get_logger,
    unbind_execution,
)
from flasharb.core.state import AccountingLedger, AdminContext, ExecutionPhase, ExecutionResult, ExecutorState

log = get_logger(__name__)


class FlashArbExecutor:
    def __init__(
        self,
        chain: Chain,
        address: str,
        admin: AdminContext,
        swap_router: ConcentratedLiquidityRouter,
        ledger: Optional[AccountingLedger] = None,
    ):
        self.chain = chain
        self.address = chain.deploy(address, self)
        self.admin = admin
        self.ledger = ledger or AccountingLedger()
        self.swap_router = swap_router
        self.guard = ReentrancyGuard(name=f"executor:{self.address}")
        self.dispatcher = StrategyDispatcher(chain, self.address, swap_router)
        self.phase = ExecutionPhase.IDLE
        self._staged: Optional[ExecutionResult] = None
        log.info("FLASH_ARB_EXECUTOR_DEPLOYED", address=self.address, owner=admin.owner, lending_pool=admin.lending_pool)

    # -----------------------------------------------------------
    # Persistent state
    # -----------------------------------------------------------

    @property
    def state(self) -> ExecutorState:
        return ExecutorState(admin=self.admin, ledger=self.ledger)

    def load_state(self, state: ExecutorState):
        self.admin = state.admin
        self.ledger = state.ledger
        log.info("EXECUTOR_STATE_LOADED", total_arbitrages=state.ledger.total_arbitrages)

    def snapshot(self) -> ExecutorState:
        return self.state

    def restore(self, saved: ExecutorState):
        self.admin = saved.admin
        self.ledger = saved.ledger
        self._staged = None

    def get_stats(self) -> Tuple[int, int]:
        return self.ledger.total_profits, self.ledger.total_arbitrages

    def get_balance(self, token: str) -> int:
        balance = self.chain.balance_of(token, self.address)
        log.info("EXECUTOR_BALANCE", token=checksum(token), balance=balance)
        return balance

    # -----------------------------------------------------------
    # Loan initiation
    # -----------------------------------------------------------

    def execute_fee_tier_arbitrage(
        self,
        caller: str,
        asset: str,
        amount: int,
        token_b: str,
        buy_fee: int,
        sell_fee: int,
        min_profit: int,
    ) -> ExecutionResult:
        params = build_params(
            FeeTierArb, token_a=asset, token_b=token_b, buy_fee=buy_fee, sell_fee=sell_fee, min_profit=min_profit,
        )
        return self.execute(caller, asset, amount, params)

    def execute_cross_protocol_arbitrage(
        self,
        caller: str,
        asset: str,
        amount: int,
        token_out: str,
        venue_a_fee: int,
        venue_b_router: str,
        buy_on_concentrated: bool,
        min_profit: int,
    ) -> ExecutionResult:
        params = build_params(
            CrossProtocolArb,
            token_in=asset,
            token_out=token_out,
            venue_a_fee=venue_a_fee,
            venue_b_router=venue_b_router,
            buy_on_concentrated=buy_on_concentrated,
            min_profit=min_profit,
        )
        return self.execute(caller, asset, amount, params)

    def execute(self, caller: str, asset: str, amount: int, params: StrategyParams) -> ExecutionResult:
        return self._run(caller, asset, amount, encode_payload(params), params)

    def execute_payload(self, caller: str, asset: str, amount: int, payload: bytes) -> ExecutionResult:
        """Raw entry point: the payload is decoded at initiation and again inside the loan callback."""
        return self._run(caller, asset, amount, payload, None)

    def _check_initiation(self, caller: str, amount: int, payload: bytes, params: Optional[StrategyParams]):
        if checksum(caller) != self.admin.owner:
            raise AuthorizationError("Ownable: caller is not the owner")
        if self.admin.paused:
            raise SystemPausedError("Pausable: paused")
        if amount <= 0:
            raise ConfigurationError("Amount must be greater than 0")
        if params is None:
            params = decode_payload(payload)
        if isinstance(params, CrossProtocolArb) and not self.admin.is_router_approved(params.venue_b_router):
            raise ConfigurationError(f"Router {params.venue_b_router} is not approved")

    def _run(
        self,
        caller: str,
        asset: str,
        amount: int,
        payload: bytes,
        params: Optional[StrategyParams],
    ) -> ExecutionResult:
        with self.guard.enter():
            execution_id = uuid.uuid4().hex[:12]
            bind_execution(execution_id)
            try:
                with self.chain.atomic(f"flash_arb:{execution_id}"):
                    self._check_initiation(caller, amount, payload, params)
                    self._staged = None
                    self.phase = ExecutionPhase.LOAN_REQUESTED
                    log.info("FLASH_LOAN_REQUESTED", asset=asset, amount=amount)
                    lending_pool = self.chain.contract_at(self.admin.lending_pool)
                    lending_pool.request_loan(self.address, self.address, [asset], [amount], payload)
                    return self._record()
            finally:
                self.phase = ExecutionPhase.IDLE
                self._staged = None
                unbind_execution()

    # -----------------------------------------------------------
    # Loan callback
    # -----------------------------------------------------------

    def on_loan_received(
        self,
        caller: str,
        assets: List[str],
        amounts: List[int],
        fees: List[int],
        initiator: str,
        payload: bytes,
    ) -> bool:
        with self.chain.atomic("loan_callback"):
            self._authenticate_callback(caller, initiator)

            if not (len(assets) == len(amounts) == len(fees) == 1):
                raise ConfigurationError("Executor handles exactly one borrowed asset per loan")
            asset, amount, fee = checksum(assets[0]), amounts[0], fees[0]

            params, strategy = self.dispatcher.resolve(payload)
            self.phase = ExecutionPhase.STRATEGY_DISPATCHED

            # Balance the executor held before the loan arrived.
            baseline = self.chain.balance_of(asset, self.address) - amount

            strategy.execute(asset, amount, fee, params, self.admin)
            self.phase = ExecutionPhase.SWAPS_EXECUTED

            self._staged = self._repay_and_verify(asset, amount, fee, params, baseline)
            return True

    def _authenticate_callback(self, caller: str, initiator: str):
        if self.phase is ExecutionPhase.LOAN_REQUESTED:
            self.phase = ExecutionPhase.CALLBACK_RECEIVED
        if checksum(caller) != self.admin.lending_pool:
            log.critical("UNAUTHORIZED_LOAN_CALLBACK", caller=caller)
            raise AuthorizationError("Caller is not the lending pool")
        if checksum(initiator) != self.address:
            log.critical("FOREIGN_LOAN_INITIATOR", initiator=initiator)
            raise AuthorizationError("Flash loan was not initiated by this executor")
        if self.phase is not ExecutionPhase.CALLBACK_RECEIVED:
            raise AuthorizationError("No flash loan in flight")
        self.phase = ExecutionPhase.AUTHENTICATED

    # -----------------------------------------------------------
    # Repayment, profit verification, accounting
    # -----------------------------------------------------------

    def _repay_and_verify(
        self,
        asset: str,
        amount: int,
        fee: int,
        params: StrategyParams,
        baseline: int,
    ) -> ExecutionResult:
        repay_amount = amount + fee
        self.chain.transfer(asset, self.address, self.admin.lending_pool, repay_amount)
        self.phase = ExecutionPhase.REPAID

        profit = self.chain.balance_of(asset, self.address) - baseline
        if profit < params.min_profit:
            raise ProfitShortfallError(
                f"Realized profit {profit} below minimum {params.min_profit}",
                required=params.min_profit,
                actual=profit,
            )
        log.info("FLASH_LOAN_REPAYMENT_SENT", asset=asset, repay_amount=repay_amount, profit=profit)
        return ExecutionResult(
            asset=asset,
            amount_borrowed=amount,
            fee=fee,
            profit_realized=profit,
            strategy_tag=int(params.TAG),
            timestamp=datetime.fromtimestamp(self.chain.timestamp, tz=timezone.utc),
        )

    def _record(self) -> ExecutionResult:
        """Commits the staged result. Only reached after the facility accepted repayment."""
        result = self._staged
        if result is None:
            raise ExecutionError("Loan callback did not complete")
        self.ledger = self.ledger.record(result)
        self.phase = ExecutionPhase.RECORDED

        strategy_name = StrategyTag(result.strategy_tag).name.lower()
        ARBITRAGES_EXECUTED.labels(strategy_name).inc()
        PROFIT_REALIZED.labels(result.asset).inc(result.profit_realized)
        log.info(
            "FLASH_ARB_EXECUTED",
            strategy=strategy_name,
            asset=result.asset,
            amount_borrowed=result.amount_borrowed,
            fee=result.fee,
            profit=result.profit_realized,
            total_profits=self.ledger.total_profits,
            total_arbitrages=self.ledger.total_arbitrages,
        )
        return result
