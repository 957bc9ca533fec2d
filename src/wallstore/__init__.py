"""
wallstore: content-addressed resolution layer for ledger-backed message walls.

The ledger records only a digest of each message body. wallstore keeps the
bodies themselves, keyed by that digest, and resolves them back for readers.
"""

__version__ = "0.1.0"
