from .builder import BuildOutcome, BuildPolicy, build, parse_build_args, run
from .exceptions import (
    BuildRunError,
    EmptyBuildArgKeyError,
    FaasBuildError,
    ImageBuildError,
    MalformedBuildArgError,
    MissingLanguageError,
    StackError,
)
from .stack import FunctionSpec, Services, load_stack

__all__ = [
    "BuildOutcome",
    "BuildPolicy",
    "BuildRunError",
    "EmptyBuildArgKeyError",
    "FaasBuildError",
    "FunctionSpec",
    "ImageBuildError",
    "MalformedBuildArgError",
    "MissingLanguageError",
    "Services",
    "StackError",
    "build",
    "load_stack",
    "parse_build_args",
    "run",
]
