"""MCP server exposing the Up Banking API to AI agent hosts."""

__version__ = "0.1.0"
