"""Postman MCP Server.

Expose Postman collections, environments, and collection runs as named
functions behind a uniform call/response envelope.
"""

__version__ = "0.1.0"

from .core.dispatcher import FunctionDispatcher
from .core.models import FunctionCall, FunctionDefinition, FunctionResponse

__all__ = ["FunctionCall", "FunctionDefinition", "FunctionDispatcher", "FunctionResponse"]
