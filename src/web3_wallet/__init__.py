"""Multi-chain EVM wallet manager.

Keeps encrypted keystores, merges user chain/token definitions over the
built-in defaults, and submits single or bulk transfers with per-item
failure isolation.
"""

__version__ = "0.3.0"
