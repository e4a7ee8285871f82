"""Pydantic models for the session protocol and the HTTP API.

The WebSocket protocol exchanges small JSON objects.  A client opens a
session with a *start* message carrying the source code, then sends *input*
messages while the program runs.  The server answers with tagged ``stdout``,
``stderr``, ``exit`` and ``error`` messages.
"""

from __future__ import annotations

import json
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator


DEFAULT_LANGUAGE = "python"

# Accepted spellings mapped to the canonical language tag.
LANGUAGE_ALIASES = {
    "python": "python",
    "python3": "python",
    "java": "java",
    "c": "c",
    "cpp": "cpp",
    "c++": "cpp",
}

SUPPORTED_LANGUAGES = ("python", "java", "c", "cpp")


def _require_utf8(value: Optional[str], field: str) -> Optional[str]:
    # Lone surrogates survive JSON decoding but cannot be written to a file or pipe.
    if value is not None:
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError(f"{field} is not valid UTF-8 text")
    return value


class ProtocolError(ValueError):
    """An inbound message could not be decoded or is not valid here."""


class Language(BaseModel):
    """A language offered by the batch execution backend."""

    id: int
    name: str


LANGUAGES: List[Language] = [
    Language(id=71, name="Python"),
    Language(id=50, name="C"),
    Language(id=54, name="C++"),
    Language(id=62, name="Java"),
]


class StartMessage(BaseModel):
    """First message of a session: what to run and how."""

    code: str = Field(..., description="Source code to run.")
    input: Optional[str] = Field(
        default=None, description="Initial line written to the program's stdin."
    )
    language: str = Field(default=DEFAULT_LANGUAGE, description="Language tag.")

    @field_validator("language", mode="before")
    @classmethod
    def _normalise_language(cls, value):
        if value is None:
            return DEFAULT_LANGUAGE
        if not isinstance(value, str):
            raise ValueError("language must be a string")
        canonical = LANGUAGE_ALIASES.get(value.strip().lower())
        if canonical is None:
            raise ValueError(f"Unsupported language: {value}")
        return canonical

    @field_validator("code")
    @classmethod
    def _check_code(cls, value: str) -> str:
        if "\x00" in value:
            raise ValueError("code must not contain NUL characters")
        return _require_utf8(value, "code")

    @field_validator("input")
    @classmethod
    def _check_input(cls, value: Optional[str]) -> Optional[str]:
        return _require_utf8(value, "input")


class InputMessage(BaseModel):
    """A line of interactive input for the running program."""

    input: str

    @field_validator("input")
    @classmethod
    def _check_input(cls, value: str) -> str:
        return _require_utf8(value, "input")


InboundMessage = Union[StartMessage, InputMessage]


class StdoutMessage(BaseModel):
    type: Literal["stdout"] = "stdout"
    data: str


class StderrMessage(BaseModel):
    type: Literal["stderr"] = "stderr"
    data: str


class ExitMessage(BaseModel):
    type: Literal["exit"] = "exit"
    code: Optional[int] = None


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    error: str


OutboundMessage = Union[StdoutMessage, StderrMessage, ExitMessage, ErrorMessage]


def parse_inbound(raw: Union[str, bytes, dict]) -> InboundMessage:
    """Decode one inbound frame.

    A payload containing ``code`` is a start message; otherwise a payload
    containing ``input`` is an input message.  Anything else raises
    :class:`ProtocolError`.
    """
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except ValueError:
            raise ProtocolError("Invalid message: expected a JSON object")
    if not isinstance(data, dict):
        raise ProtocolError("Invalid message: expected a JSON object")

    try:
        if "code" in data:
            return StartMessage.model_validate(data)
        if "input" in data:
            return InputMessage.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        # Strip pydantic's "Value error, " prefix from custom validator messages.
        reason = str(first.get("msg", "invalid field")).removeprefix("Value error, ")
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ProtocolError(f"Invalid message: {field}: {reason}" if field else reason) from exc
    raise ProtocolError("Invalid message: expected 'code' or 'input'")


class RunRequest(BaseModel):
    """Request body for the non-interactive ``POST /run`` endpoint."""

    source_code: Optional[str] = None
    language_id: Optional[int] = None
    stdin: Optional[str] = None
