"""SubLedger: plan registry, subscription ledger and access checks."""

__version__ = "0.1.0"
