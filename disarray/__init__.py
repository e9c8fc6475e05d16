"""
Disarray application package.

This package contains the local JSON persistence, the view model that
tracks server/channel selection, and the Qt UI for the desktop chat client.
"""

from .config import AppConfig
from .models import Channel, Message, Server
from .storage import LocalDataService
from .viewmodel import ChatViewModel
