"""
stakeledger: staking and reward accounting.

- `stakeledger.core`: pure kernels (fixed point, snapshot ledger, reward pools,
  epoch schedule, boardroom and epoch-pool transitions).
- `stakeledger.state`: the in-memory asset ledger the kernels settle against.
- `stakeledger.integration`: imperative shells that execute kernel transitions
  atomically against an `AssetLedger`, plus YAML config and scenario replay.
"""

__version__ = "0.1.0"
