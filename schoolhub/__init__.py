"""SchoolHub backend: accounts, notifications, messaging and the real-time channel."""

__version__ = "0.1.0"
