"""Function registry and dispatch.

The catalog is built once and never mutated. ``FunctionDispatcher.dispatch``
routes a call by name to its handler and folds every outcome, including
unexpected exceptions, into a ``FunctionResponse``. It never raises.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from .clients.postman import PostmanClient
from .errors import PostmanError
from .models import (
    FunctionCall,
    FunctionDefinition,
    FunctionResponse,
    ParameterSchema,
    ParameterSpec,
    RequestSpec,
)

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"

Handler = Callable[[PostmanClient, dict[str, Any]], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class RegisteredFunction:
    """A catalog entry: the public definition plus the handler behind it."""

    definition: FunctionDefinition
    handler: Handler

    @property
    def name(self) -> str:
        return self.definition.name

    async def invoke(self, client: PostmanClient, args: dict[str, Any]) -> Any:
        result = self.handler(client, args)
        if inspect.isawaitable(result):
            result = await result
        return result


def _schema(required: tuple[str, ...] = (), **properties: tuple[str, str]) -> ParameterSchema:
    """Build a ParameterSchema from ``name=(description, type)`` keyword pairs."""
    return ParameterSchema(
        properties={
            name: ParameterSpec(description=description, type=type_tag)
            for name, (description, type_tag) in properties.items()
        },
        required=list(required),
    )


# ─── Handlers ────────────────────────────────────────────────────────────────


def say_hello(client: PostmanClient, args: dict[str, Any]) -> str:
    name = args.get("name") or ""
    return f"Hello, {name}! Welcome to the Postman MCP Server."


def reverse_string(client: PostmanClient, args: dict[str, Any]) -> str:
    return str(args.get("input") or "")[::-1]


async def get_collections(client: PostmanClient, args: dict[str, Any]) -> Any:
    return await client.get_collections()


async def get_collection(client: PostmanClient, args: dict[str, Any]) -> Any:
    return await client.get_collection(args.get("collectionId"))


async def create_collection(client: PostmanClient, args: dict[str, Any]) -> Any:
    return await client.create_collection(args.get("name"), args.get("description"))


def _text(value: Any) -> Optional[str]:
    """Coerce a loosely typed scalar argument to a string, keeping None."""
    return None if value is None else str(value)


async def add_request(client: PostmanClient, args: dict[str, Any]) -> Any:
    request = RequestSpec(
        name=_text(args.get("name")),
        method=_text(args.get("method")),
        url=_text(args.get("url")),
        description=_text(args.get("description")),
        headers=args.get("headers"),
        body=args.get("body"),
        tests=_text(args.get("tests")),
    )
    return await client.add_request_to_collection(
        args.get("collectionId"), request, args.get("folderPath")
    )


async def get_environments(client: PostmanClient, args: dict[str, Any]) -> Any:
    return await client.get_environments()


async def get_environment(client: PostmanClient, args: dict[str, Any]) -> Any:
    return await client.get_environment(args.get("environmentId"))


async def create_environment(client: PostmanClient, args: dict[str, Any]) -> Any:
    return await client.create_environment(args.get("name"), args.get("variables"))


async def run_collection(client: PostmanClient, args: dict[str, Any]) -> Any:
    return await client.run_collection(args.get("collectionId"), args.get("environmentId"))


# ─── Catalog ─────────────────────────────────────────────────────────────────


CATALOG: tuple[RegisteredFunction, ...] = (
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__sayHello",
            description="A warm, friendly greeting from your new Workers MCP server.",
            parameters=_schema(
                ("name",),
                name=("the name of the person we are greeting.", "string"),
            ),
        ),
        say_hello,
    ),
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__reverseString",
            description="Reverses the characters in a string.",
            parameters=_schema(
                ("input",),
                input=("the string to reverse.", "string"),
            ),
        ),
        reverse_string,
    ),
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__get_collections",
            description="Get all Postman collections for the current user.",
        ),
        get_collections,
    ),
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__get_collection",
            description="Get a specific Postman collection by ID.",
            parameters=_schema(
                ("collectionId",),
                collectionId=("The ID of the collection to retrieve.", "string"),
            ),
        ),
        get_collection,
    ),
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__create_collection",
            description="Create a new Postman collection.",
            parameters=_schema(
                ("name",),
                name=("The name of the collection to create.", "string"),
                description=("Optional description for the collection.", "string"),
            ),
        ),
        create_collection,
    ),
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__add_request",
            description="Add a request to an existing Postman collection.",
            parameters=_schema(
                ("collectionId", "name", "method", "url"),
                collectionId=("The ID of the collection to add the request to.", "string"),
                name=("The name of the request.", "string"),
                method=("The HTTP method for the request (GET, POST, etc.).", "string"),
                url=("The URL for the request.", "string"),
                description=("Optional description for the request.", "string"),
                headers=("Optional headers for the request.", "object"),
                body=("Optional body for the request.", "object"),
                tests=("Optional JavaScript test code for the request.", "string"),
                folderPath=(
                    'Optional folder path where the request should be added (e.g. "Folder/Subfolder").',
                    "string",
                ),
            ),
        ),
        add_request,
    ),
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__get_environments",
            description="Get all Postman environments for the current user.",
        ),
        get_environments,
    ),
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__get_environment",
            description="Get a specific Postman environment by ID.",
            parameters=_schema(
                ("environmentId",),
                environmentId=("The ID of the environment to retrieve.", "string"),
            ),
        ),
        get_environment,
    ),
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__create_environment",
            description="Create a new Postman environment.",
            parameters=_schema(
                ("name", "variables"),
                name=("The name of the environment to create.", "string"),
                variables=("Array of key-value pairs for environment variables.", "object"),
            ),
        ),
        create_environment,
    ),
    RegisteredFunction(
        FunctionDefinition(
            name="mcp__run_collection",
            description="Run a Postman collection and return the results.",
            parameters=_schema(
                ("collectionId",),
                collectionId=("The ID of the collection to run.", "string"),
                environmentId=("Optional ID of the environment to use for the run.", "string"),
            ),
        ),
        run_collection,
    ),
)


class FunctionDispatcher:
    """Routes function calls to handlers backed by a PostmanClient."""

    def __init__(self, client: PostmanClient, functions: tuple[RegisteredFunction, ...] = CATALOG):
        self.client = client
        self._functions: Mapping[str, RegisteredFunction] = MappingProxyType(
            {fn.name: fn for fn in functions}
        )

    def list_functions(self) -> list[FunctionDefinition]:
        """All function definitions, in registration order."""
        return [fn.definition for fn in self._functions.values()]

    def has_function(self, name: str) -> bool:
        return name in self._functions

    async def dispatch(self, call: FunctionCall) -> FunctionResponse:
        try:
            args = call.arguments()
            function = self._functions.get(call.name)
            if function is None:
                logger.warning("Unknown function requested: %s", call.name)
                return FunctionResponse.failure(f"Function {call.name} not found")

            logger.debug("Dispatching %s with %s", call.name, sorted(args))
            content = await function.invoke(self.client, args)
            return FunctionResponse.success(content)
        except PostmanError as e:
            logger.warning("Function %s failed: %s", call.name, e)
            return FunctionResponse.failure(str(e) or UNKNOWN_ERROR)
        except Exception as e:
            logger.exception("Error executing function %s", call.name)
            return FunctionResponse.failure(str(e) or UNKNOWN_ERROR)
