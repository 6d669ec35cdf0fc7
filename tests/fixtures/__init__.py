"""Shared pytest fixtures for the forum admin test suite."""
