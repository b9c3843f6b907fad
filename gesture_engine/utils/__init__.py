"""Configuration, logging and recording utilities."""
