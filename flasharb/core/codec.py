# /flasharb/core/codec.py
"""
Strategy payload codec.

A payload is the ABI encoding of ``(uint8 tag, ...variant fields)``, the same
bytes the deployed executor receives as the flash loan ``params``. The tag is
always the first 32-byte word, so it can be read without knowing the variant.
"""
from enum import IntEnum
from typing import ClassVar, Dict, Tuple, Type, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError as AbiDecodingError, EncodingError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flasharb.core.chain import checksum
from flasharb.core.errors import ConfigurationError, DecodingError

WORD_SIZE = 32
MAX_UINT24 = 2**24 - 1


class StrategyTag(IntEnum):
    FEE_TIER = 1
    CROSS_PROTOCOL = 2


class _StrategyParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    TAG: ClassVar[StrategyTag]
    ABI_TYPES: ClassVar[Tuple[str, ...]]

    def abi_values(self) -> tuple:
        raise NotImplementedError

    @classmethod
    def from_abi(cls, values: tuple) -> "_StrategyParams":
        raise NotImplementedError


class FeeTierArb(_StrategyParams):
    """Buy token_b on the cheaper fee tier, sell it back on the dearer one."""
    TAG: ClassVar[StrategyTag] = StrategyTag.FEE_TIER
    ABI_TYPES: ClassVar[Tuple[str, ...]] = ("uint8", "address", "address", "uint24", "uint24", "uint256")

    token_a: str
    token_b: str
    buy_fee: int = Field(ge=0, le=MAX_UINT24)
    sell_fee: int = Field(ge=0, le=MAX_UINT24)
    min_profit: int = Field(ge=0)

    @field_validator("token_a", "token_b")
    @classmethod
    def _checksum(cls, value: str) -> str:
        return checksum(value)

    def abi_values(self) -> tuple:
        return (self.token_a, self.token_b, self.buy_fee, self.sell_fee, self.min_profit)

    @classmethod
    def from_abi(cls, values: tuple) -> "FeeTierArb":
        token_a, token_b, buy_fee, sell_fee, min_profit = values
        return cls(token_a=token_a, token_b=token_b, buy_fee=buy_fee, sell_fee=sell_fee, min_profit=min_profit)


class CrossProtocolArb(_StrategyParams):
    """Round trip between the concentrated-liquidity venue and a classic AMM router."""
    TAG: ClassVar[StrategyTag] = StrategyTag.CROSS_PROTOCOL
    ABI_TYPES: ClassVar[Tuple[str, ...]] = ("uint8", "address", "address", "uint24", "address", "bool", "uint256")

    token_in: str
    token_out: str
    venue_a_fee: int = Field(ge=0, le=MAX_UINT24)
    venue_b_router: str
    buy_on_concentrated: bool
    min_profit: int = Field(ge=0)

    @field_validator("token_in", "token_out", "venue_b_router")
    @classmethod
    def _checksum(cls, value: str) -> str:
        return checksum(value)

    def abi_values(self) -> tuple:
        return (
            self.token_in, self.token_out, self.venue_a_fee,
            self.venue_b_router, self.buy_on_concentrated, self.min_profit,
        )

    @classmethod
    def from_abi(cls, values: tuple) -> "CrossProtocolArb":
        token_in, token_out, venue_a_fee, router, buy_on_concentrated, min_profit = values
        return cls(
            token_in=token_in, token_out=token_out, venue_a_fee=venue_a_fee,
            venue_b_router=router, buy_on_concentrated=buy_on_concentrated, min_profit=min_profit,
        )


StrategyParams = Union[FeeTierArb, CrossProtocolArb]

PAYLOAD_TYPES: Dict[int, Type[_StrategyParams]] = {
    FeeTierArb.TAG: FeeTierArb,
    CrossProtocolArb.TAG: CrossProtocolArb,
}


def encode_payload(params: StrategyParams) -> bytes:
    try:
        return encode(list(params.ABI_TYPES), [int(params.TAG), *params.abi_values()])
    except EncodingError as e:
        raise ConfigurationError(f"Cannot encode {type(params).__name__}: {e}") from e


def decode_tag(payload: bytes) -> int:
    """Reads only the leading tag word."""
    if len(payload) < WORD_SIZE:
        raise DecodingError(f"Payload of {len(payload)} bytes has no strategy tag")
    try:
        (tag,) = decode(["uint8"], payload[:WORD_SIZE])
    except AbiDecodingError as e:
        raise DecodingError(f"Malformed strategy tag: {e}") from e
    return tag


def decode_payload(payload: bytes) -> StrategyParams:
    tag = decode_tag(payload)
    params_type = PAYLOAD_TYPES.get(tag)
    if params_type is None:
        raise DecodingError(f"Unknown strategy tag {tag}")
    try:
        values = decode(list(params_type.ABI_TYPES), payload)
    except AbiDecodingError as e:
        raise DecodingError(f"Payload does not match {params_type.__name__}: {e}") from e
    return params_type.from_abi(values[1:])


def build_params(params_type: Type[_StrategyParams], **fields) -> StrategyParams:
    """Constructs a payload variant, reporting bad fields as a ConfigurationError."""
    try:
        return params_type(**fields)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {params_type.__name__} parameters: {e}") from e
