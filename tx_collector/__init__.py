"""
tx_collector — block transaction collection for LCD-backed chains.
"""

__version__ = "0.1.0"
