"""Shared infrastructure: logging, settings, errors, resilience, metrics."""
