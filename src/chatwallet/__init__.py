"""Chat-driven custodial wallet.

Parses free-text chat messages into wallet commands, holds a single pending
transfer per conversation until the user confirms it, and executes confirmed
transfers against a value-transfer backend.
"""

__version__ = "0.1.0"
