"""Keystore, wallet lifecycle and JSON-RPC access for EVM chains.

Private keys are stored encrypted (Web3 Secret Storage v3) and are only
decrypted for the duration of a single call.
"""
