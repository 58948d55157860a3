"""Core configuration, paths and error types."""
