"""Built-in strategies."""

from .mean_reversion import MeanReversionStrategy
from .momentum import MomentumStrategy
from .spread import SpreadStrategy

__all__ = [
    "MeanReversionStrategy",
    "MomentumStrategy",
    "SpreadStrategy",
]
