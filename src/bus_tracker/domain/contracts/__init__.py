"""Contracts (protocols) implemented by application services."""
