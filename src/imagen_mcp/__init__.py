"""Gemini image generation exposed as MCP tools.

Provides:
- generate_image, edit_image and compose_images tools
- a stdio MCP server and a small CLI (``imagen-mcp``)
"""

__version__ = "1.0.0"
