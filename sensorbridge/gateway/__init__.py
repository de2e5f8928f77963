"""Decryption gateway.

Delivers finished decryptions from the engine to the ledger's callback
entry point. Holds no ledger state of its own.
"""
