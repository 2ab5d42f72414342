"""
pyderive
- finds calls to functions that do not exist yet (e.g. 'derive_equal(a, b)')
- infers the operation from the call name's prefix, and the types from the arguments' annotations
- writes the missing functions into the package's 'derived_gen.py'
"""

from .core import panic
from .driver import DeriveSettings, derive_all
from . import cli

__version__ = "0.1.0"

__all__ = [
    'panic',
    'DeriveSettings',
    'derive_all',
    'cli'
]
