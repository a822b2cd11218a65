"""keyshelf client: key management services and GnuPG access."""
