"""Utils module."""
from utils.logger import setup_logger, get_logger, app_logger, cleanup_old_logs, parse_log_level
from utils.masking import mask_sensitive_data, shorten_data_urls

__all__ = [
    "setup_logger",
    "get_logger",
    "app_logger",
    "cleanup_old_logs",
    "parse_log_level",
    "mask_sensitive_data",
    "shorten_data_urls",
]
