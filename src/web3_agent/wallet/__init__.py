"""Ledger access for web3-agent.

Provides the known EVM chain table, signing-identity loading (raw key or
encrypted keystore) and the JSON-RPC ledger client the wallet tools use
to read balances and submit transfers.
"""
