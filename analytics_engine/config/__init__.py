"""
Configuration package for the analytics engine.

Contains environment settings and logging configuration.
"""

from analytics_engine.config.settings import Settings, get_settings, settings
from analytics_engine.config.logging import get_logger, setup_logging

__all__ = ['Settings', 'get_settings', 'settings', 'get_logger', 'setup_logging']
