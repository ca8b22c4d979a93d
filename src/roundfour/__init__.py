from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("roundfour")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .config import has_profile, load_settings
from .fields import NumberField
from .ideals import Ideal
from .maxord import (
    DEFAULT_CACHE,
    MaximalOrderCache,
    maximal_order,
    ring_of_integers,
    tame_overorder,
)
from .multipliers import ring_of_multipliers
from .orders import Order, equation_order
from .overorder import pmaximal_overorder
from .radical import Certified, Split, pradical, radical
from .runtime import APPLY, CFG
from .utility import (
    AlgebraicInvariantViolation,
    NonTerminationError,
    RoundFourError,
    UserInputError,
)

__all__ = [
    "APPLY",
    "CFG",
    "DEFAULT_CACHE",
    "AlgebraicInvariantViolation",
    "Certified",
    "Ideal",
    "MaximalOrderCache",
    "NonTerminationError",
    "NumberField",
    "Order",
    "RoundFourError",
    "Split",
    "UserInputError",
    "__version__",
    "equation_order",
    "has_profile",
    "load_settings",
    "maximal_order",
    "pmaximal_overorder",
    "pradical",
    "radical",
    "ring_of_integers",
    "ring_of_multipliers",
    "tame_overorder",
]
