"""
Custodial yield-bearing staking ledger: deposits, daily-accrual yield, global
distributions, restricted transfers and owner governance over one atomic ledger.

This package exposes only lightweight metadata at import time. The facade lives
in `staking.protocol`; import it (and the engines/state subpackages) explicitly.
"""

# Bump when making a tagged release; keep in sync with pyproject.toml.
__version__ = "0.1.0"

__all__ = ["__version__"]
