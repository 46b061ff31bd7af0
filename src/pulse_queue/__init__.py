"""
Pulse Queue - heart-rate matched music queueing
"""

__version__ = "0.1.0"
