"""
LCD node access: HTTP client and response models.
"""

from tx_collector.lcd.client import LcdClient
from tx_collector.lcd.models import LcdTransaction

__all__ = ["LcdClient", "LcdTransaction"]
