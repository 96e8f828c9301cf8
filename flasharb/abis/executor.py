# /flasharb/abis/executor.py
# Functions of the deployed FlashArbExecutor contract used by the client.
FLASH_ARB_EXECUTOR_ABI = [
    {"inputs": [{"internalType": "address", "name": "asset", "type": "address"}, {"internalType": "uint256", "name": "amount", "type": "uint256"}, {"internalType": "address", "name": "tokenB", "type": "address"}, {"internalType": "uint24", "name": "buyFee", "type": "uint24"}, {"internalType": "uint24", "name": "sellFee", "type": "uint24"}, {"internalType": "uint256", "name": "minProfit", "type": "uint256"}], "name": "executeFeeTierArbitrage", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"internalType": "address", "name": "asset", "type": "address"}, {"internalType": "uint256", "name": "amount", "type": "uint256"}, {"internalType": "address", "name": "tokenOut", "type": "address"}, {"internalType": "uint24", "name": "venueAFee", "type": "uint24"}, {"internalType": "address", "name": "venueBRouter", "type": "address"}, {"internalType": "bool", "name": "buyOnConcentrated", "type": "bool"}, {"internalType": "uint256", "name": "minProfit", "type": "uint256"}], "name": "executeCrossProtocolArbitrage", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [], "name": "totalProfits", "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "totalArbitrages", "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"internalType": "address", "name": "", "type": "address"}], "name": "approvedRouters", "outputs": [{"internalType": "bool", "name": "", "type": "bool"}], "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "paused", "outputs": [{"internalType": "bool", "name": "", "type": "bool"}], "stateMutability": "view", "type": "function"},
]
