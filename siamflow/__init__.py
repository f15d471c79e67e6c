"""
SiamFlow: smart money flow and market breadth analytics for the Thai market.
"""

from siamflow.core.core import SiamFlow

__version__ = "0.1.0"

__all__ = ["SiamFlow", "__version__"]
