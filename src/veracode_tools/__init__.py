"""Veracode REST API exposed as agent-callable tools."""

__version__ = "0.1.0"
