"""Command-line administration tool for remote supervisord servers."""

from .__version__ import __version__

__all__ = ["__version__"]
