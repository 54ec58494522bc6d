"""
AFFiNE MCP Server - Model Context Protocol bridge to the AFFiNE GraphQL API

Exposes AFFiNE workspaces, documents, comments, history and blobs as MCP
tools and resources.
"""

__version__ = "1.0.0"
