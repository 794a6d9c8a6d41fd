"""Typed builder error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from consolebuild.models import ArchiveResult


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    VALIDATION = "E_VALIDATION"
    CACHE_LOCATION = "E_CACHE_LOCATION"
    CACHE_NOT_FOUND = "E_CACHE_NOT_FOUND"
    ARCHIVE = "E_ARCHIVE"
    CANCELLED = "E_CANCELLED"
    BUNDLER = "E_BUNDLER"


class ConsoleBuildError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
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


class ValidationError(ConsoleBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class CacheLocationError(ConsoleBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CACHE_LOCATION, hint=hint, context=context)


class CacheNotFoundError(ConsoleBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CACHE_NOT_FOUND, hint=hint, context=context)


class ArchiveError(ConsoleBuildError):
    """Archive failure; ``result`` holds the diagnostic trail when one exists."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
        result: ArchiveResult | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.ARCHIVE, hint=hint, context=context)
        self.result = result


class CacheCancelledError(ConsoleBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
        result: ArchiveResult | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CANCELLED, hint=hint, context=context)
        self.result = result


class BundlerError(ConsoleBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BUNDLER, hint=hint, context=context)


__all__ = [
    "ArchiveError",
    "BundlerError",
    "CacheCancelledError",
    "CacheLocationError",
    "CacheNotFoundError",
    "ConsoleBuildError",
    "ErrorCode",
    "ValidationError",
]
