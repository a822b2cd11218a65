"""
Cryptography modules for keyshelf.

This package provides GnuPG keyring access: listing, exporting, importing
and deleting secret keys, and symmetric encryption for setup messages.
"""

from .keyring import GnuPGKeyring, create_keyring

__all__ = [
    "GnuPGKeyring",
    "create_keyring",
]
