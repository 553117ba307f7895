"""sweepscan: concurrent storage scanner and duplicate file finder."""

from sweepscan.version import __version__

__all__ = ["__version__"]
