"""Nonprofit web-presence discovery and LLM profile extraction."""

__version__ = "0.1.0"
