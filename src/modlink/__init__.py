"""Public package entrypoint for the module reference resolver."""

from .directives import DirectiveResolver, DirectiveSession
from .errors import (
    ErrorCode,
    LockfileError,
    MissingDirectiveArgument,
    MissingRequiredOption,
    ModlinkError,
    ModuleNotFound,
    NoSatisfyingVersion,
    PathEscapesProject,
    RangeInvalid,
)
from .hashes import HashRewriter
from .hosts import HostSharder
from .layout import ModuleLayout
from .lockfile import LockNode, VersionIndex
from .models import PackageInfo, PackageRef, ResolvedAsset
from .observability import StructuredLogger
from .options import CompilerOptions
from .template import CompiledTemplate, TemplateCompiler

__all__ = [
    "CompiledTemplate",
    "CompilerOptions",
    "DirectiveResolver",
    "DirectiveSession",
    "ErrorCode",
    "HashRewriter",
    "HostSharder",
    "LockNode",
    "LockfileError",
    "MissingDirectiveArgument",
    "MissingRequiredOption",
    "ModlinkError",
    "ModuleLayout",
    "ModuleNotFound",
    "NoSatisfyingVersion",
    "PackageInfo",
    "PackageRef",
    "PathEscapesProject",
    "RangeInvalid",
    "ResolvedAsset",
    "StructuredLogger",
    "TemplateCompiler",
    "VersionIndex",
]
