"""View controllers holding page state for PawMarket."""

from .discovery_feed import DiscoveryFeed
from .dashboard import UserDashboard
from .pet_details import LikeToggle, PetDetailView, FavoritesView
from .pet_forms import PetFormView
from .groups import GroupsBrowser, GroupDetailView, GroupManager, MyGroups
from .account import AccountSettingsView
from .admin import AdminDashboard

__all__ = [
    "DiscoveryFeed",
    "UserDashboard",
    "LikeToggle",
    "PetDetailView",
    "FavoritesView",
    "PetFormView",
    "GroupsBrowser",
    "GroupDetailView",
    "GroupManager",
    "MyGroups",
    "AccountSettingsView",
    "AdminDashboard",
]
