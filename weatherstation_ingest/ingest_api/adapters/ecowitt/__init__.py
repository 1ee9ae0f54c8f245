from .adapter import EcowittAdapter
from .sensors import ECOWITT_SENSORS

__all__ = ["EcowittAdapter", "ECOWITT_SENSORS"]
