"""Heart rate domain - the simulated heart-rate signal."""

from .simulator import HeartRateSimulator, next_heart_rate

__all__ = ["HeartRateSimulator", "next_heart_rate"]
