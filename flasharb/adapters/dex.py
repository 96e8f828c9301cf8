# /flasharb/adapters/dex.py
# Simulated swap venues. Both families hold pool liquidity as ordinary token
# balances on the Chain, pull input through an allowance and revert (raise)
# when the output floor or the deadline is not met.
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flasharb.core.chain import Chain, checksum, derive_address
from flasharb.core.errors import (
    ConfigurationError,
    DeadlineExpiredError,
    InsufficientLiquidityError,
    ProfitShortfallError,
)
from flasharb.core.logger import get_logger

log = get_logger(__name__)

FEE_DENOMINATOR_PPM = 1_000_000


class ExactInputSingleParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    token_in: str
    token_out: str
    fee: int
    recipient: str
    deadline: int
    amount_in: int = Field(ge=0)
    amount_out_minimum: int = Field(default=0, ge=0)

    @field_validator("token_in", "token_out", "recipient")
    @classmethod
    def _checksum(cls, value: str) -> str:
        return checksum(value)


def constant_product_out(amount_in: int, reserve_in: int, reserve_out: int, fee_ppm: int) -> int:
    """Output of a constant-product swap after an input fee given in parts per million."""
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidityError("Pool has no liquidity")
    amount_in_with_fee = amount_in * (FEE_DENOMINATOR_PPM - fee_ppm)
    return (amount_in_with_fee * reserve_out) // (reserve_in * FEE_DENOMINATOR_PPM + amount_in_with_fee)


class ConcentratedLiquidityRouter:
    """
    Single-pool exact-input router, one pool per (pair, fee tier).
    Each pool is priced over its virtual reserves; tick ranges are not modelled.
    """
    def __init__(self, chain: Chain, address: str):
        self.chain = chain
        self.address = chain.deploy(address, self)
        self._pools: set[Tuple[str, str, int]] = set()

    def pool_address(self, token_a: str, token_b: str, fee: int) -> str:
        token0, token1 = sorted((checksum(token_a), checksum(token_b)))
        return derive_address(self.address, token0, token1, fee)

    def add_liquidity(self, provider: str, token_a: str, token_b: str, fee: int, amount_a: int, amount_b: int) -> str:
        pool = self.pool_address(token_a, token_b, fee)
        self.chain.transfer(token_a, provider, pool, amount_a)
        self.chain.transfer(token_b, provider, pool, amount_b)
        self._pools.add(tuple(sorted((checksum(token_a), checksum(token_b)))) + (fee,))
        log.info("CONCENTRATED_POOL_FUNDED", pool=pool, fee=fee, amount_a=amount_a, amount_b=amount_b)
        return pool

    def _liquidity_holder(self, token_in: str, token_out: str, fee: int) -> str:
        key = tuple(sorted((checksum(token_in), checksum(token_out)))) + (fee,)
        if key not in self._pools:
            raise InsufficientLiquidityError(f"No pool for {token_in}/{token_out} at fee {fee}")
        return self.pool_address(token_in, token_out, fee)

    def quote_exact_input_single(self, token_in: str, token_out: str, fee: int, amount_in: int) -> int:
        pool = self._liquidity_holder(token_in, token_out, fee)
        return constant_product_out(
            amount_in,
            self.chain.balance_of(token_in, pool),
            self.chain.balance_of(token_out, pool),
            fee,
        )

    def exact_input_single(self, caller: str, params: ExactInputSingleParams) -> int:
        if self.chain.timestamp > params.deadline:
            raise DeadlineExpiredError("Transaction too old")
        holder = self._liquidity_holder(params.token_in, params.token_out, params.fee)
        amount_out = self.quote_exact_input_single(params.token_in, params.token_out, params.fee, params.amount_in)
        if amount_out < params.amount_out_minimum:
            raise ProfitShortfallError(
                "Too little received", required=params.amount_out_minimum, actual=amount_out
            )
        self.chain.transfer_from(params.token_in, self.address, caller, holder, params.amount_in)
        self.chain.transfer(params.token_out, holder, params.recipient, amount_out)
        log.info(
            "CONCENTRATED_SWAP",
            token_in=params.token_in, token_out=params.token_out, fee=params.fee,
            amount_in=params.amount_in, amount_out=amount_out,
        )
        self._after_swap(caller, params.token_in, params.token_out, amount_out)
        return amount_out

    def _after_swap(self, caller: str, token_in: str, token_out: str, amount_out: int):
        pass


class ClassicAmmRouter:
    """Path-based constant-product router with a flat 0.3% fee (UniswapV2 style)."""
    FEE_PPM = 3_000

    def __init__(self, chain: Chain, address: str):
        self.chain = chain
        self.address = chain.deploy(address, self)
        self._pairs: set[Tuple[str, str]] = set()

    def pair_address(self, token_a: str, token_b: str) -> str:
        token0, token1 = sorted((checksum(token_a), checksum(token_b)))
        return derive_address(self.address, token0, token1)

    def add_liquidity(self, provider: str, token_a: str, token_b: str, amount_a: int, amount_b: int) -> str:
        pair = self.pair_address(token_a, token_b)
        self.chain.transfer(token_a, provider, pair, amount_a)
        self.chain.transfer(token_b, provider, pair, amount_b)
        self._pairs.add(tuple(sorted((checksum(token_a), checksum(token_b)))))
        log.info("CLASSIC_PAIR_FUNDED", pair=pair, amount_a=amount_a, amount_b=amount_b)
        return pair

    def _liquidity_holder(self, token_in: str, token_out: str) -> str:
        if tuple(sorted((checksum(token_in), checksum(token_out)))) not in self._pairs:
            raise InsufficientLiquidityError(f"No pair for {token_in}/{token_out}")
        return self.pair_address(token_in, token_out)

    def _hop_out(self, amount_in: int, token_in: str, token_out: str) -> int:
        pair = self._liquidity_holder(token_in, token_out)
        return constant_product_out(
            amount_in,
            self.chain.balance_of(token_in, pair),
            self.chain.balance_of(token_out, pair),
            self.FEE_PPM,
        )

    def get_amounts_out(self, amount_in: int, path: List[str]) -> List[int]:
        if len(path) < 2:
            raise ConfigurationError("INVALID_PATH")
        amounts = [amount_in]
        for token_in, token_out in zip(path, path[1:]):
            amounts.append(self._hop_out(amounts[-1], token_in, token_out))
        return amounts

    def swap_exact_tokens_for_tokens(
        self,
        caller: str,
        amount_in: int,
        amount_out_min: int,
        path: List[str],
        to: str,
        deadline: int,
    ) -> List[int]:
        if self.chain.timestamp > deadline:
            raise DeadlineExpiredError("EXPIRED")
        amounts = self.get_amounts_out(amount_in, path)
        if amounts[-1] < amount_out_min:
            raise ProfitShortfallError("INSUFFICIENT_OUTPUT_AMOUNT", required=amount_out_min, actual=amounts[-1])

        hops = list(zip(path, path[1:]))
        self.chain.transfer_from(path[0], self.address, caller, self._liquidity_holder(*hops[0]), amount_in)
        for i, (token_in, token_out) in enumerate(hops):
            holder = self._liquidity_holder(token_in, token_out)
            recipient = self._liquidity_holder(*hops[i + 1]) if i + 1 < len(hops) else to
            self.chain.transfer(token_out, holder, recipient, amounts[i + 1])

        log.info("CLASSIC_SWAP", path=path, amounts=amounts)
        self._after_swap(caller, path[0], path[-1], amounts[-1])
        return amounts

    def _after_swap(self, caller: str, token_in: str, token_out: str, amount_out: int):
        pass
