"""Pydantic data models: the function catalog and call/response envelope.

The dispatcher, the server entry points, and the tests all speak in these
shapes. Remote documents (collections, environments) are deliberately not
modelled: they are passed through as decoded JSON.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ResponseStatus(str, Enum):
    """Outcome of a dispatched function call."""

    SUCCESS = "success"
    ERROR = "error"


class ParameterSpec(BaseModel):
    """Description and type tag of a single function parameter."""

    description: str
    type: str = "string"


class ParameterSchema(BaseModel):
    """Object schema describing all parameters of a function."""

    properties: dict[str, ParameterSpec] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    type: str = "object"


class FunctionDefinition(BaseModel, frozen=True):
    """A callable operation in the catalog."""

    name: str
    description: str
    parameters: ParameterSchema = Field(default_factory=ParameterSchema)


class FunctionParameter(BaseModel):
    """One name/value pair of a function call."""

    name: str
    value: Any = None


class FunctionCall(BaseModel):
    """An incoming invocation: the function name plus ordered parameters."""

    name: str
    parameters: list[FunctionParameter] = Field(default_factory=list)

    def arguments(self) -> dict[str, Any]:
        """Fold the parameters into a keyed bag. Later duplicates win."""
        bag: dict[str, Any] = {}
        for param in self.parameters:
            bag[param.name] = param.value
        return bag


class FunctionResponse(BaseModel):
    """Uniform result envelope. ``content`` is meaningful on success, ``error`` on failure."""

    status: ResponseStatus
    content: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, content: Any) -> FunctionResponse:
        return cls(status=ResponseStatus.SUCCESS, content=content)

    @classmethod
    def failure(cls, message: str) -> FunctionResponse:
        return cls(status=ResponseStatus.ERROR, content=None, error=message)

    @property
    def ok(self) -> bool:
        return self.status is ResponseStatus.SUCCESS

    def to_dict(self) -> dict:
        """Serialize to the wire envelope, omitting ``error`` on success."""
        if self.ok:
            return {"status": self.status.value, "content": self.content}
        return {"status": self.status.value, "error": self.error, "content": None}


class RequestSpec(BaseModel):
    """Caller-supplied description of a request to add to a collection."""

    name: Optional[str] = None
    method: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    headers: Any = None
    body: Any = None
    tests: Optional[str] = None


class EnvironmentVariable(BaseModel):
    """A key/value pair stored in a remote environment."""

    key: str
    value: Any = ""
    type: str = "default"
    enabled: bool = True
