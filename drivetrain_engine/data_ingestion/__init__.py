"""Loaders for component reference data."""
