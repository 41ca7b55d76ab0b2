"""
Default parameters for the raffle.

These values define the public rules of a round.
Changing them changes who can enter and when a draw happens, so announce it.
"""

# Native currency uses 18 decimals (wei-style base units)
FEE_DECIMALS = 18

# Entry fee (raw units): 0.01 of the native token
ENTRY_FEE_RAW = 10 ** 16

# Seconds a round stays open before a draw may be requested
DRAW_INTERVAL_S = 30

# Oracle price lane (key hash)
GAS_LANE = "0x474e34a077df58807dbe9c96d3c009b23b3c6d0cce433e59bbf5b34f823bc56c"

# Gas the oracle may spend on the fulfilment callback
CALLBACK_GAS_LIMIT = 500_000

# Blocks the oracle waits before answering
REQUEST_CONFIRMATIONS = 3

# Only words[0] is ever consumed
NUM_WORDS = 1
