# DataTables documentation MCP server - JSON-RPC 2.0 over stdio
# Implements the Model Context Protocol session lifecycle and tool dispatch

import sys, json, logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TextIO, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    NOT_INITIALIZED_MESSAGE,
    PARSE_ERROR,
    SERVER_NOT_INITIALIZED,
    InvalidEnvelope,
    JSONRPCRequest,
    Outcome,
    create_error,
    create_response,
    parse_envelope,
    text_content,
)
from .tools import DocumentationTools

logger = logging.getLogger(__name__)

SERVER_NAME = "datatables-mcp"
SERVER_VERSION = "1.0.0"

INITIALIZE_METHOD = "initialize"
INITIALIZED_NOTIFICATION = "notifications/initialized"


class SessionState(Enum):
    AWAITING_HANDSHAKE = "awaiting_handshake"
    READY = "ready"


class ClientInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = "unknown"
    version: Optional[str] = None


class InitializeParams(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    protocol_version: Optional[str] = Field(default=None, alias="protocolVersion")
    client_info: ClientInfo = Field(default_factory=ClientInfo, alias="clientInfo")
    capabilities: Dict[str, Any] = Field(default_factory=dict)


class ListParams(BaseModel):
    model_config = ConfigDict(extra="allow")

    cursor: Optional[str] = None


class ToolCallParams(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    arguments: Optional[Dict[str, Any]] = None


Handler = Callable[[Any], Awaitable[Outcome]]


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return f"{field}: {first['msg']}" if field else first["msg"]


class MCPServer:
    """One MCP session: lifecycle state plus a static method table.

    Requests other than ``initialize`` are rejected with ``-32002`` until the
    client sends ``notifications/initialized``. Notifications never produce a
    response.
    """

    def __init__(self, tools: DocumentationTools):
        self.tools = tools
        self.state = SessionState.AWAITING_HANDSHAKE
        self.capabilities = {
            "tools": {},
            "resources": {},
            "prompts": {},
        }
        self.server_info = {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
        }
        self.methods: Dict[str, Tuple[Type[BaseModel], Handler]] = {
            INITIALIZE_METHOD: (InitializeParams, self.handle_initialize),
            "tools/list": (ListParams, self.handle_tools_list),
            "tools/call": (ToolCallParams, self.handle_tools_call),
            "resources/list": (ListParams, self.handle_resources_list),
            "prompts/list": (ListParams, self.handle_prompts_list),
        }

    @property
    def ready(self) -> bool:
        return self.state is SessionState.READY

    async def handle_initialize(self, params: InitializeParams) -> Outcome:
        """Handle MCP initialize request"""
        logger.info(f"Initializing MCP session with client: {params.client_info.name}")
        return Outcome.success({
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": self.capabilities,
            "serverInfo": self.server_info,
        })

    async def handle_tools_list(self, params: ListParams) -> Outcome:
        return Outcome.success({"tools": self.tools.list_tools()})

    async def handle_tools_call(self, params: ToolCallParams) -> Outcome:
        """Run a tool; its text becomes a single text content block"""
        outcome = self.tools.call(params.name, params.arguments)
        if not outcome.ok:
            return outcome
        return Outcome.success(text_content(outcome.value))

    async def handle_resources_list(self, params: ListParams) -> Outcome:
        return Outcome.success({"resources": []})

    async def handle_prompts_list(self, params: ListParams) -> Outcome:
        return Outcome.success({"prompts": []})

    def handle_notification(self, request: JSONRPCRequest) -> None:
        if request.method == INITIALIZED_NOTIFICATION:
            if self.ready:
                logger.debug("Duplicate initialized notification ignored")
                return
            self.state = SessionState.READY
            logger.info("MCP session initialized successfully")
        else:
            logger.info(f"Ignoring notification: {request.method}")

    async def handle_request(self, request: JSONRPCRequest) -> Dict[str, Any]:
        """Dispatch one request; always returns exactly one response envelope"""
        if not self.ready and request.method != INITIALIZE_METHOD:
            logger.warning(f"Rejected {request.method}: session not initialized")
            return create_error(request.id, SERVER_NOT_INITIALIZED, NOT_INITIALIZED_MESSAGE)

        entry = self.methods.get(request.method)
        if entry is None:
            logger.warning(f"Unknown method: {request.method}")
            return create_error(request.id, METHOD_NOT_FOUND, f"Unknown method: {request.method}")

        params_model, handler = entry
        try:
            params = params_model.model_validate(request.params or {})
        except ValidationError as e:
            message = f"Invalid params: {_describe_validation_error(e)}"
            logger.warning(f"{request.method}: {message}")
            return create_error(request.id, INVALID_PARAMS, message)

        try:
            outcome = await handler(params)
        except Exception as e:
            logger.exception(f"Error handling {request.method}")
            return create_error(request.id, INTERNAL_ERROR, str(e))

        if not outcome.ok:
            logger.error(f"Error handling {request.method}: {outcome.error}")
            return create_error(request.id, INTERNAL_ERROR, outcome.error)

        return create_response(request.id, outcome.value)

    async def handle_message(self, data: Any) -> Optional[Dict[str, Any]]:
        """Handle one decoded message; None when nothing should be sent back"""
        try:
            request = parse_envelope(data)
        except InvalidEnvelope as e:
            if isinstance(data, dict) and "id" not in data:
                logger.warning(f"Dropping invalid notification: {e}")
                return None
            logger.warning(f"Parse error: {e}")
            return create_error(None, PARSE_ERROR, f"Parse error: {e}")

        if request.is_notification:
            self.handle_notification(request)
            return None
        return await self.handle_request(request)

    async def handle_line(self, line: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        """Decode one input line; undecodable input is a parse error with id null"""
        try:
            if isinstance(line, bytes):
                line = line.decode("utf-8")
            logger.debug(f"Received: {line.strip()}")
            data = json.loads(line)
        except (ValueError, RecursionError) as e:
            # UnicodeDecodeError and JSONDecodeError are both ValueErrors
            message = "Parse error: nesting too deep" if isinstance(e, RecursionError) else f"Parse error: {e}"
            logger.warning(message)
            return create_error(None, PARSE_ERROR, message)
        return await self.handle_message(data)

    def encode_response(self, response: Dict[str, Any]) -> str:
        try:
            return json.dumps(response)
        except (TypeError, ValueError) as e:
            logger.exception("Response could not be serialized")
            # ids come from decoded JSON, so they always serialize
            return json.dumps(create_error(
                response.get("id"), INTERNAL_ERROR, f"Response could not be serialized: {e}"
            ))

    async def serve(self, reader: Optional[TextIO] = None, writer: Optional[TextIO] = None) -> None:
        """Read one JSON-RPC message per line until the input stream closes.

        Lines are read as bytes when the reader exposes a binary buffer, so
        invalid UTF-8 costs one parse error instead of the session.
        """
        reader = reader or sys.stdin
        writer = writer or sys.stdout
        source = getattr(reader, "buffer", reader)
        logger.info("Starting MCP server in stdio mode")

        while True:
            line = source.readline()
            if not line:
                break
            if not line.strip():
                continue

            try:
                response = await self.handle_line(line)
            except Exception:
                logger.exception("Unexpected error handling message")
                continue
            if response is None:  # Notifications get no response
                continue

            payload = self.encode_response(response)
            logger.debug(f"Sending: {payload}")
            try:
                writer.write(payload + "\n")
                writer.flush()
            except BrokenPipeError:
                logger.info("Client closed the output stream")
                break

        logger.info("Input stream closed, shutting down")
