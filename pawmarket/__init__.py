"""
PawMarket: async client for a pet adoption marketplace.
Browse and filter pets, manage favorites and listings, and take part in
community groups through the marketplace REST API.
"""

__version__ = "1.0.0"
__author__ = "Lee Whieldon"

from .client import PawMarketClient
from .config import settings
from .notifications import Notifier

__all__ = ["PawMarketClient", "Notifier", "settings"]
