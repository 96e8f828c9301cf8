# /test/support.py
# Arbitrum One token and venue addresses, plus fixed actors and amounts the
# simulated worlds are built from.
WETH = "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1"
USDC = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"
LENDING_POOL = "0x794a61358D6845594F94dc1DB02A252b5b4814aD"
SWAP_ROUTER = "0xE592427A0AEce92De3Edee1F18E0157C05861564"
CLASSIC_ROUTER = "0x1b02dA8Cb0d097eB8D57A175b88c7D8b47997506"
OWNER = "0x1111111111111111111111111111111111111111"
STRANGER = "0x2222222222222222222222222222222222222222"
EXECUTOR = "0x3333333333333333333333333333333333333333"

NOW = 1_700_000_000
POOL_LIQUIDITY = 1_000_000
VENUE_INVENTORY = 10_000_000
