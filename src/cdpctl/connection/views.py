"""Wire-level models for control calls."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Request(BaseModel):
    """A control call sent to the endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    method: str
    params: dict[str, Any] = Field(default_factory=dict)
    session_id: str | None = Field(default=None, alias='sessionId')

    def to_frame(self) -> dict[str, Any]:
        """Serialize into the frame handed to the transport."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RemoteErrorPayload(BaseModel):
    """Structured error returned by the endpoint for one request."""

    code: int | None = None
    message: str = 'unknown remote error'
    data: Any = None


class Response(BaseModel):
    """The endpoint's answer to a Request with the same id."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    result: dict[str, Any] = Field(default_factory=dict)
    error: RemoteErrorPayload | None = None
    session_id: str | None = Field(default=None, alias='sessionId')
