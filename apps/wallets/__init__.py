"""Wallets app package.

Holds the ledger store (per-user balances with an append-only transaction
history), the boundary to the external card payment capability, wallet
top-ups and the masked saved payment methods.
"""
