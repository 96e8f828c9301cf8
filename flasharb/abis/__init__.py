"""ABI fragments for the contracts the on-chain client talks to."""

from flasharb.abis.erc20 import ERC20_ABI
from flasharb.abis.executor import FLASH_ARB_EXECUTOR_ABI

__all__ = ["ERC20_ABI", "FLASH_ARB_EXECUTOR_ABI"]
