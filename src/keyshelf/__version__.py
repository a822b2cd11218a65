"""Version information for keyshelf."""

__version__ = "0.1.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Release information
__title__ = "keyshelf"
__description__ = "Autocrypt secret key manager for OpenPGP mail clients"
__author__ = "keyshelf developers"
__license__ = "MIT"
__copyright__ = "Copyright 2026 keyshelf developers"


def get_version() -> str:
    """Return the current version string."""
    return __version__
