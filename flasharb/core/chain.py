# /flasharb/core/chain.py
# Simulated settlement layer: token balances, allowances, deployed contracts
# and the all-or-nothing unit of work every execution runs inside.

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Tuple

from web3 import Web3

from flasharb.core.errors import ConfigurationError, InsufficientBalanceError
from flasharb.core.logger import get_logger, EXECUTIONS_REVERTED

log = get_logger(__name__)

# EIP-7528 sentinel for the chain's native currency.
NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"


def checksum(address: str) -> str:
    """Normalizes an address to EIP-55 form; rejects anything that is not one."""
    try:
        return Web3.to_checksum_address(address)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid address: {address!r}") from e


def derive_address(*parts: Any) -> str:
    """Deterministic pseudo-address for simulated pools and pairs."""
    digest = Web3.keccak(text=":".join(str(p) for p in parts))
    return Web3.to_checksum_address(Web3.to_hex(digest[12:]))


class Chain:
    """
    In-memory ledger of ERC20-style balances plus a registry of deployed
    contract objects. Anything that moves value goes through here so that
    ``atomic()`` can undo it.
    """
    def __init__(self, timestamp: int | None = None):
        self._balances: Dict[str, Dict[str, int]] = {}
        self._allowances: Dict[Tuple[str, str, str], int] = {}
        self._contracts: Dict[str, Any] = {}
        self._depth = 0
        self.timestamp = int(time.time()) if timestamp is None else timestamp

    # -----------------------------------------------------------
    # Contracts
    # -----------------------------------------------------------

    def deploy(self, address: str, contract: Any) -> str:
        address = checksum(address)
        if address in self._contracts:
            raise ConfigurationError(f"Address {address} already has code")
        self._contracts[address] = contract
        log.debug("CONTRACT_DEPLOYED", address=address, kind=type(contract).__name__)
        return address

    def contract_at(self, address: str) -> Any:
        address = checksum(address)
        try:
            return self._contracts[address]
        except KeyError:
            raise ConfigurationError(f"No contract deployed at {address}") from None

    # -----------------------------------------------------------
    # Tokens
    # -----------------------------------------------------------

    def balance_of(self, token: str, holder: str) -> int:
        return self._balances.get(checksum(token), {}).get(checksum(holder), 0)

    def mint(self, token: str, holder: str, amount: int):
        if amount < 0:
            raise ConfigurationError("Cannot mint a negative amount")
        book = self._balances.setdefault(checksum(token), {})
        holder = checksum(holder)
        book[holder] = book.get(holder, 0) + amount

    def transfer(self, token: str, sender: str, recipient: str, amount: int):
        token, sender, recipient = checksum(token), checksum(sender), checksum(recipient)
        if amount < 0:
            raise ConfigurationError("Transfer amount must be non-negative")
        book = self._balances.setdefault(token, {})
        available = book.get(sender, 0)
        if available < amount:
            raise InsufficientBalanceError(
                f"Transfer of {amount} {token} from {sender} exceeds balance {available}"
            )
        book[sender] = available - amount
        book[recipient] = book.get(recipient, 0) + amount

    def approve(self, token: str, owner: str, spender: str, amount: int):
        self._allowances[(checksum(token), checksum(owner), checksum(spender))] = amount

    def allowance(self, token: str, owner: str, spender: str) -> int:
        return self._allowances.get((checksum(token), checksum(owner), checksum(spender)), 0)

    def transfer_from(self, token: str, spender: str, owner: str, recipient: str, amount: int):
        key = (checksum(token), checksum(owner), checksum(spender))
        allowed = self._allowances.get(key, 0)
        if allowed < amount:
            raise InsufficientBalanceError(
                f"Allowance {allowed} of {key[2]} over {key[1]} is below {amount}"
            )
        self.transfer(token, owner, recipient, amount)
        self._allowances[key] = allowed - amount

    # -----------------------------------------------------------
    # Atomic unit of work
    # -----------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _snapshot(self) -> dict:
        return {
            "balances": {token: dict(book) for token, book in self._balances.items()},
            "allowances": dict(self._allowances),
            "contracts": {
                address: contract.snapshot()
                for address, contract in self._contracts.items()
                if hasattr(contract, "snapshot")
            },
        }

    def _restore(self, snapshot: dict):
        self._balances = snapshot["balances"]
        self._allowances = snapshot["allowances"]
        for address, saved in snapshot["contracts"].items():
            self._contracts[address].restore(saved)

    @contextmanager
    def atomic(self, label: str = "unit") -> Iterator["Chain"]:
        """
        Runs the enclosed block as one indivisible unit. On any exception every
        balance, allowance and stateful contract is put back exactly as it was
        and the exception propagates. A nested unit is a savepoint: its failure
        undoes only its own effects, and its success commits nothing until the
        outermost unit finishes.
        """
        snapshot = self._snapshot()
        outermost = self._depth == 0
        self._depth += 1
        try:
            yield self
        except Exception as e:
            self._restore(snapshot)
            if outermost:
                EXECUTIONS_REVERTED.labels(type(e).__name__).inc()
                log.warning("EXECUTION_REVERTED", unit=label, error_type=type(e).__name__, error=str(e))
            else:
                log.debug("NESTED_UNIT_REVERTED", unit=label, error_type=type(e).__name__)
            raise
        finally:
            self._depth -= 1
