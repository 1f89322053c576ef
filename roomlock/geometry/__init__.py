"""Canonical room geometry: models, fixed conventions and the canonicalizer."""
