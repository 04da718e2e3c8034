"""
Utility modules for the Knowledge Assistant.
"""

from .logger import setup_logging, setup_script_logging, get_log_dir

__all__ = [
    'setup_logging',
    'setup_script_logging',
    'get_log_dir',
]
