"""Core engine, event bus and shared types."""
