"""Emission control and event consumers."""
