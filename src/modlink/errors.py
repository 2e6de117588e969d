"""Typed resolver error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across directive surfaces."""

    MISSING_OPTION = "E_MISSING_OPTION"
    LOCKFILE = "E_LOCKFILE"
    MODULE_NOT_FOUND = "E_MODULE_NOT_FOUND"
    RANGE_INVALID = "E_RANGE_INVALID"
    NO_SATISFYING_VERSION = "E_NO_SATISFYING_VERSION"
    PATH_ESCAPES_PROJECT = "E_PATH_ESCAPES_PROJECT"
    MISSING_ARGUMENT = "E_MISSING_ARGUMENT"


class ModlinkError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: dict[str, str]

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


class MissingRequiredOption(ModlinkError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.MISSING_OPTION, hint=hint, context=context)


class LockfileError(ModlinkError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.LOCKFILE, hint=hint, context=context)


class ModuleNotFound(ModlinkError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.MODULE_NOT_FOUND, hint=hint, context=context)


class RangeInvalid(ModlinkError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.RANGE_INVALID, hint=hint, context=context)


class NoSatisfyingVersion(ModlinkError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.NO_SATISFYING_VERSION, hint=hint, context=context
        )


class PathEscapesProject(ModlinkError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.PATH_ESCAPES_PROJECT, hint=hint, context=context
        )


class MissingDirectiveArgument(ModlinkError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.MISSING_ARGUMENT, hint=hint, context=context)


__all__ = [
    "ErrorCode",
    "LockfileError",
    "MissingDirectiveArgument",
    "MissingRequiredOption",
    "ModlinkError",
    "ModuleNotFound",
    "NoSatisfyingVersion",
    "PathEscapesProject",
    "RangeInvalid",
]
