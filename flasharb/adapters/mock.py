# /flasharb/adapters/mock.py
# - Venues with fixed, operator-set quotes for deterministic tests.
# - The router address itself holds the inventory it pays out from.
# - An optional on_swap hook runs after a swap settles (used to attempt reentrancy).
from typing import Callable, Dict, List, Optional, Tuple

from flasharb.adapters.dex import ClassicAmmRouter, ConcentratedLiquidityRouter
from flasharb.core.chain import Chain, checksum
from flasharb.core.errors import InsufficientLiquidityError
from flasharb.core.logger import get_logger

log = get_logger(__name__)

SwapHook = Callable[[str, str, str, int], None]


class MockConcentratedRouter(ConcentratedLiquidityRouter):
    def __init__(self, chain: Chain, address: str):
        super().__init__(chain, address)
        self.quotes: Dict[Tuple[str, str, int], int] = {}
        self.swaps: List[dict] = []
        self.on_swap: Optional[SwapHook] = None

    def set_quote(self, token_in: str, token_out: str, fee: int, amount_out: int):
        """Set a fixed output for any input on the (token_in, token_out, fee) pool."""
        self.quotes[(checksum(token_in), checksum(token_out), fee)] = amount_out
        log.info("MOCK_CONCENTRATED_QUOTE_SET", token_in=token_in, token_out=token_out, fee=fee, amount_out=amount_out)

    def _liquidity_holder(self, token_in: str, token_out: str, fee: int) -> str:
        if (checksum(token_in), checksum(token_out), fee) not in self.quotes:
            raise InsufficientLiquidityError(f"No mock quote for {token_in}->{token_out} at fee {fee}")
        return self.address

    def quote_exact_input_single(self, token_in: str, token_out: str, fee: int, amount_in: int) -> int:
        self._liquidity_holder(token_in, token_out, fee)
        return self.quotes[(checksum(token_in), checksum(token_out), fee)]

    def _after_swap(self, caller: str, token_in: str, token_out: str, amount_out: int):
        self.swaps.append({"caller": caller, "token_in": token_in, "token_out": token_out, "amount_out": amount_out})
        if self.on_swap:
            self.on_swap(caller, token_in, token_out, amount_out)


class MockClassicRouter(ClassicAmmRouter):
    def __init__(self, chain: Chain, address: str):
        super().__init__(chain, address)
        self.quotes: Dict[Tuple[str, str], int] = {}
        self.swaps: List[dict] = []
        self.on_swap: Optional[SwapHook] = None

    def set_quote(self, path: List[str], amount_out: int):
        """Set a fixed output for one hop of a trade path."""
        token_in, token_out = path
        self.quotes[(checksum(token_in), checksum(token_out))] = amount_out
        log.info("MOCK_CLASSIC_QUOTE_SET", path=path, amount_out=amount_out)

    def _liquidity_holder(self, token_in: str, token_out: str) -> str:
        if (checksum(token_in), checksum(token_out)) not in self.quotes:
            raise InsufficientLiquidityError(f"No mock quote for path {token_in}->{token_out}")
        return self.address

    def _hop_out(self, amount_in: int, token_in: str, token_out: str) -> int:
        self._liquidity_holder(token_in, token_out)
        return self.quotes[(checksum(token_in), checksum(token_out))]

    def _after_swap(self, caller: str, token_in: str, token_out: str, amount_out: int):
        self.swaps.append({"caller": caller, "token_in": token_in, "token_out": token_out, "amount_out": amount_out})
        if self.on_swap:
            self.on_swap(caller, token_in, token_out, amount_out)
