"""Core configuration, logging, pipeline and CLI."""
