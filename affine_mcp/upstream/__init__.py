from .operations import Operation
from .proxy import AffineProxy

__all__ = ["AffineProxy", "Operation"]
