"""Bundled default avatar images for the overlay."""
