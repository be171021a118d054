"""Settings, photo storage and request dependencies."""
