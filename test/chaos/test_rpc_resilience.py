# /test/chaos/test_rpc_resilience.py
# Read-only RPC calls ride out transient failures; broadcasts are never retried.
import pytest
from eth_account import Account
from tenacity import wait_none

from flasharb.core.tx import TransactionManager

KEY = "0x" + "01" * 32
EXECUTOR = "0x3333333333333333333333333333333333333333"


class FlakyEth:
    def __init__(self, failures: int):
        self.failures = failures
        self.nonce_calls = 0
        self.sent = []

    def get_transaction_count(self, address, block_identifier):
        self.nonce_calls += 1
        if self.nonce_calls <= self.failures:
            raise ConnectionError("rpc timeout")
        return 7

    def get_block(self, block_identifier):
        return {"baseFeePerGas": 100}

    @property
    def max_priority_fee(self):
        return 2

    def estimate_gas(self, tx):
        return 250_000

    def send_raw_transaction(self, raw):
        self.sent.append(raw)
        return b"\x12" * 32


class FlakyW3:
    def __init__(self, failures: int):
        self.eth = FlakyEth(failures)


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    for name in ("get_nonce", "estimate_fees", "estimate_gas"):
        monkeypatch.setattr(getattr(TransactionManager, name).retry, "wait", wait_none())


def test_transient_rpc_failures_are_retried():
    w3 = FlakyW3(failures=2)
    manager = TransactionManager(w3=w3, private_key=KEY)

    tx_hash = manager.build_and_send_transaction({"to": EXECUTOR, "data": "0x", "value": 0})

    assert tx_hash == "0x" + "12" * 32
    assert w3.eth.nonce_calls == 3
    assert len(w3.eth.sent) == 1


def test_persistent_rpc_failure_surfaces_without_broadcasting():
    w3 = FlakyW3(failures=10)
    manager = TransactionManager(w3=w3, private_key=KEY)

    with pytest.raises(ConnectionError):
        manager.build_and_send_transaction({"to": EXECUTOR, "data": "0x", "value": 0})
    assert w3.eth.nonce_calls == 3
    assert w3.eth.sent == []


def test_fees_follow_base_fee():
    manager = TransactionManager(w3=FlakyW3(failures=0), private_key=KEY)
    assert manager.estimate_fees() == {"maxFeePerGas": 202, "maxPriorityFeePerGas": 2}
    assert manager.address == Account.from_key(KEY).address
