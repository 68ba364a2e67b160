"""Error envelope schemas shared across exception handlers."""

from __future__ import annotations

from pydantic import BaseModel
from pydantic import ConfigDict


class FieldError(BaseModel):
    """Single failing field reported by validation or binding."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str

    def render(self) -> str:
        return f"{self.field}:{self.message}"


class ErrorEnvelope(BaseModel):
    """Uniform JSON body returned for every failed request."""

    model_config = ConfigDict(frozen=True)

    status: int
    code: int | str
    message: str | None = None
