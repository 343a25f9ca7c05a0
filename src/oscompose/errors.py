"""Typed compose error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar, Self


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    COMPOSE = "E_COMPOSE"
    VALIDATION = "E_VALIDATION"
    INVALID_DISTRO = "E_INVALID_DISTRO"
    INVALID_OUTPUT_FORMAT = "E_INVALID_OUTPUT_FORMAT"
    INVALID_ARCHITECTURE = "E_INVALID_ARCHITECTURE"
    CREDENTIAL_HASHING = "E_CREDENTIAL_HASHING"
    REPOSITORY_CONFIG = "E_REPOSITORY_CONFIG"
    BLUEPRINT = "E_BLUEPRINT"


def coerce_context(context: Mapping[str, object] | None) -> dict[str, str]:
    """Render context values as strings, dropping the ones that are unset.

    Pipeline names, UUIDs, sizes and paths all end up as plain strings so the
    context can be compared, printed and serialized the same way.
    """
    if not context:
        return {}
    return {key: str(value) for key, value in context.items() if value is not None}


class ComposeError(Exception):
    """Base error carrying a code, an optional hint and the compose request context.

    Subclasses pick their code through ``default_code``; the context names the
    distro, architecture, image type, pipeline or stage the failure concerns.
    """

    default_code: ClassVar[ErrorCode] = ErrorCode.COMPOSE

    code: str
    hint: str | None
    context: dict[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = (code or self.default_code).value
        self.hint = hint
        self.context = coerce_context(context)

    @property
    def error_code(self) -> ErrorCode:
        return ErrorCode(self.code)

    @property
    def message(self) -> str:
        return super().__str__()

    def with_context(self, **values: object) -> Self:
        """Add request context without overriding what the raiser recorded."""
        for key, value in coerce_context(values).items():
            self.context.setdefault(key, value)
        return self

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for k, v in self.context.items():
            if v:
                parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(ComposeError):
    default_code = ErrorCode.VALIDATION


class InvalidDistroError(ComposeError):
    default_code = ErrorCode.INVALID_DISTRO


class InvalidOutputFormatError(ComposeError):
    default_code = ErrorCode.INVALID_OUTPUT_FORMAT


class InvalidArchitectureError(ComposeError):
    default_code = ErrorCode.INVALID_ARCHITECTURE


class CredentialHashingError(ComposeError):
    default_code = ErrorCode.CREDENTIAL_HASHING


class RepositoryConfigError(ComposeError):
    default_code = ErrorCode.REPOSITORY_CONFIG


class BlueprintError(ComposeError):
    default_code = ErrorCode.BLUEPRINT


__all__ = [
    "BlueprintError",
    "ComposeError",
    "CredentialHashingError",
    "ErrorCode",
    "InvalidArchitectureError",
    "InvalidDistroError",
    "InvalidOutputFormatError",
    "RepositoryConfigError",
    "ValidationError",
    "coerce_context",
]
