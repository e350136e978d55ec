"""MCP stdio server for the DataTables documentation index."""

from .mcp_server import MCPServer, SessionState
from .protocol import Outcome
from .tools import TOOLS, DocumentationTools, ToolDescriptor, ToolParameter

__all__ = [
    'MCPServer',
    'SessionState',
    'Outcome',
    'TOOLS',
    'DocumentationTools',
    'ToolDescriptor',
    'ToolParameter',
]
