"""
Robot-pair integration layer
"""

from .operations import (
    parse_operation,
    create_operation,
)
from .pair_engine import (
    PairEngineConfig,
    PairTxResult,
    apply_tx,
    apply_tx_or_raise,
)

__all__ = [
    "parse_operation",
    "create_operation",
    "PairEngineConfig",
    "PairTxResult",
    "apply_tx",
    "apply_tx_or_raise",
]
