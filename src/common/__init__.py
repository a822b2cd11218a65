"""keyshelf common layer: configuration, models, exceptions and storage."""
