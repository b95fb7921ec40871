"""Core infrastructure: configuration, logging, base models."""
