"""Core record store, event bus, configuration and error handling."""
