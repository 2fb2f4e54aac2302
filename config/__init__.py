"""
Config package - Application configuration and settings
"""

from .settings import get_settings, Settings, PlanQuota
from .logging_config import setup_logging

__all__ = ['get_settings', 'Settings', 'PlanQuota', 'setup_logging']
