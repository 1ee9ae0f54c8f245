from .adapter import WUNDERGROUND_SENSORS, WundergroundAdapter

__all__ = ["WundergroundAdapter", "WUNDERGROUND_SENSORS"]
