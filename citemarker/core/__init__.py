"""Core marker logic."""
