"""MCP stdio server exposing the image tools.

Tool results are returned as ``CallToolResult`` objects. Failures carry
``isError=True``, the message as text and a structured payload with the
error kind and JSON-RPC error code so that callers can branch on it.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from .gen.errors import ImageToolError, UpstreamError
from .tools import ImageTools

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-gemini-imagen"
SERVER_VERSION = "1.0.0"

ERROR_CODES = {
    "InvalidArgument": types.INVALID_PARAMS,
    "UnknownTool": types.METHOD_NOT_FOUND,
    "GenerationFailed": types.INTERNAL_ERROR,
    "UpstreamFailure": types.INTERNAL_ERROR,
}


def tool_definitions(tools: ImageTools) -> list[types.Tool]:
    return [
        types.Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema())
        for spec in tools.specs
    ]


def success_result(text: str) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)])


def error_result(error: ImageToolError) -> types.CallToolResult:
    code = ERROR_CODES.get(error.kind, types.INTERNAL_ERROR)
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error.message)],
        structuredContent={"kind": error.kind, "code": code, "message": error.message},
        isError=True,
    )


def handle_call(tools: ImageTools, name: str, arguments: Optional[dict[str, Any]]) -> types.CallToolResult:
    try:
        text = tools.call(name, arguments)
    except ImageToolError as e:
        logger.info("Tool %s failed (%s): %s", name, e.kind, e.message)
        return error_result(e)
    except Exception as e:
        logger.exception("Tool %s failed unexpectedly", name)
        return error_result(UpstreamError.wrap(e))
    return success_result(text)


def create_server(tools: ImageTools) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return tool_definitions(tools)

    # Arguments are validated by the pydantic models in tools.py.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        # Calls run one at a time; the blocking API request is awaited in full.
        return handle_call(tools, name, arguments)

    return server


async def serve(tools: ImageTools) -> None:
    server = create_server(tools)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("MCP Gemini Imagen server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())
