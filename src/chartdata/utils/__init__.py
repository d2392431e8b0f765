"""Helpers that are not specific to the data engine."""
