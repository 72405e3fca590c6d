"""MCP server exposing an owner's library."""

from docrecall.server.mcp_server import create_mcp_server

__all__ = ["create_mcp_server"]
