"""Outer surfaces: MCP protocol bindings and the HTTP application."""
