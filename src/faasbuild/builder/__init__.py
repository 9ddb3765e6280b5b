"""Builder module for building the container images of declared functions."""

from faasbuild.builder.build_args import parse_build_args
from faasbuild.builder.orchestrator import (
    BuildImageFunc,
    BuildOutcome,
    BuildPolicy,
    BuildStatus,
    build,
    run,
)
from faasbuild.builder.selector import functions_missing_language, select_functions

__all__ = [
    "BuildImageFunc",
    "BuildOutcome",
    "BuildPolicy",
    "BuildStatus",
    "build",
    "functions_missing_language",
    "parse_build_args",
    "run",
    "select_functions",
]
