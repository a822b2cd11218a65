"""keyshelf - Autocrypt secret key manager for OpenPGP mail clients."""

from keyshelf.__version__ import (
    __author__,
    __description__,
    __license__,
    __title__,
    __version__,
    __version_info__,
    get_version,
)

__all__ = [
    "__version__",
    "__version_info__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "get_version",
]
