# Configuration package
"""
Configuration package for the payment gateway service.
Exports settings from settings.py for easy import
"""
from .settings import settings

__all__ = ["settings"]
