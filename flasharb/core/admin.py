# /flasharb/core/admin.py
# Owner-gated operations on the executor's AdminContext and balances.
# They run as their own units of work, never inside an execution.
from flasharb.core.chain import NATIVE_TOKEN, checksum
from flasharb.core.errors import AuthorizationError, ReentrancyError
from flasharb.core.executor import FlashArbExecutor
from flasharb.core.logger import ADMIN_ACTIONS, get_logger

log = get_logger(__name__)


class ExecutorAdmin:
    def __init__(self, executor: FlashArbExecutor):
        self.executor = executor
        self.chain = executor.chain

    def _only_owner(self, caller: str, action: str):
        if checksum(caller) != self.executor.admin.owner:
            log.warning("ADMIN_ACTION_REJECTED", action=action, caller=caller)
            raise AuthorizationError("Ownable: caller is not the owner")
        if self.executor.guard.entered:
            raise ReentrancyError(f"{action} is not allowed while an execution is in flight")
        ADMIN_ACTIONS.labels(action).inc()

    def _update(self, **changes):
        self.executor.admin = self.executor.admin.model_copy(update=changes)

    def pause(self, caller: str):
        self._only_owner(caller, "pause")
        self._update(paused=True)
        log.warning("EXECUTOR_PAUSED", by=caller)

    def unpause(self, caller: str):
        self._only_owner(caller, "unpause")
        self._update(paused=False)
        log.warning("EXECUTOR_UNPAUSED", by=caller)

    def set_router_approval(self, caller: str, router: str, approved: bool):
        self._only_owner(caller, "set_router_approval")
        self.executor.admin = self.executor.admin.with_router_approval(router, approved)
        log.warning("ROUTER_APPROVAL_SET", router=checksum(router), approved=approved)

    def transfer_ownership(self, caller: str, new_owner: str):
        self._only_owner(caller, "transfer_ownership")
        self._update(owner=checksum(new_owner))
        log.warning("OWNERSHIP_TRANSFERRED", previous_owner=caller, new_owner=checksum(new_owner))

    def withdraw_token(self, caller: str, token: str) -> int:
        """Sends the executor's whole balance of ``token`` to the owner."""
        self._only_owner(caller, "withdraw_token")
        with self.chain.atomic("withdraw"):
            amount = self.chain.balance_of(token, self.executor.address)
            if amount:
                self.chain.transfer(token, self.executor.address, self.executor.admin.owner, amount)
        log.warning("FUNDS_WITHDRAWN", token=checksum(token), amount=amount, to=self.executor.admin.owner)
        return amount

    def withdraw_native(self, caller: str) -> int:
        return self.withdraw_token(caller, NATIVE_TOKEN)
