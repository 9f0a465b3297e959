"""
Structured logging for the transaction collector.

JSON logs with timestamp, event_type and level.
Use get_logger() in all collector modules for aggregation-friendly output.
"""

from tx_collector.collector_logging.logger import bind_block, get_logger

__all__ = ["bind_block", "get_logger"]
