"""Deflater configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeflaterConfig(BaseModel):
    """Options shared by every request a deflater handles.

    Built once when the middleware is composed and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    include: tuple[str, ...] = Field(
        (),
        description="Media type prefixes eligible for compression. Empty means any.",
        examples=[("text/", "application/json")],
    )
    exclude: Callable[..., Any] | None = Field(
        None,
        description="Predicate ``(request, status, headers, body)``; a truthy result skips compression.",
    )
    condition: Callable[..., Any] | None = Field(
        None,
        alias="if",
        description="Predicate ``(request, status, headers, body)``; a falsy result skips compression.",
    )
    sync: bool = Field(
        True,  # noqa: FBT003
        description="Flush the compressor after every body chunk.",
    )
    compresslevel: Annotated[int, Field(ge=1, le=9)] = Field(
        6,
        description="zlib compression level.",
    )

    @field_validator("include", mode="before")
    @classmethod
    def _validate_include(cls, value: Any) -> Any:  # noqa: ANN401
        if value is None:
            return ()
        if isinstance(value, str):
            msg = "include must be a collection of media types, not a string"
            raise ValueError(msg)  # noqa: TRY004
        return tuple(value)

    @field_validator("include", mode="after")
    @classmethod
    def _normalise_include(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(media_type.strip().lower() for media_type in value if media_type.strip())
