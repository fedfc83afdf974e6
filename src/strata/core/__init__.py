"""Core utilities: configuration and time handling."""
