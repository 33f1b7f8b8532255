"""HTTP API for the Package History tool."""

from .. import __version__

__all__ = ["__version__"]
