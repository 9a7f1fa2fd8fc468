"""Configuration loaders for forecast runs."""
