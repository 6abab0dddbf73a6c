"""Score ledger domain services: rounds, awards, undo and day locks.

This package holds the ledger logic that HTTP routes and CLI commands call
into, keeping transport concerns separated from the ledger invariants.
Functions raise ``scoreboard.errors`` exceptions and leave the session rolled
back on failure.
"""
