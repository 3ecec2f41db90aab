"""stakewall: stake-weighted endpoint allowlist for cluster validators."""

__version__ = "0.1.0"
