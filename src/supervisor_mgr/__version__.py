"""Version information for supervisor-mgr."""

__version__ = "0.1.0"
