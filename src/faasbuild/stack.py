"""Stack file models and loading.

A stack file declares the functions of a project:

    provider:
      name: openfaas
    functions:
      hello:
        lang: python3
        handler: ./hello
        image: example/hello:latest
"""

import fnmatch
import os
import re
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from faasbuild.exceptions import StackError

DEFAULT_STACK_FILE = "stack.yml"


class FunctionSpec(BaseModel):
    """One declared buildable function."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    handler: str = ""
    image: str = ""
    # Empty language means the function's template was never resolved.
    language: str = Field(default="", alias="lang")
    skip_build: bool = False
    build_args: Dict[str, str] = Field(default_factory=dict)
    build_options: List[str] = Field(default_factory=list)

    @field_validator("build_args", mode="before")
    @classmethod
    def _stringify_build_args(cls, value: Any) -> Any:
        # YAML turns unquoted numbers and booleans into non-strings.
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items()}
        return value


class Provider(BaseModel):
    name: str = "openfaas"
    gateway: str | None = None


class Services(BaseModel):
    """All functions declared in a stack file, keyed by function name."""

    provider: Provider = Field(default_factory=Provider)
    functions: Dict[str, FunctionSpec] = Field(default_factory=dict)

    def filtered(self, filter: str | None = None, regex: str | None = None) -> "Services":
        """Returns a copy holding only the functions matching filter or regex.

        filter is a shell-style wildcard matched against the whole name, regex is
        searched anywhere in the name.
        """
        if filter and regex:
            raise StackError("pass in a regex or a filter, not both")
        if not filter and not regex:
            return self

        if regex:
            try:
                pattern = re.compile(regex)
            except re.error as e:
                raise StackError(f"invalid --regex {regex!r}: {e}") from e
            matches = lambda name: pattern.search(name) is not None  # noqa: E731
        else:
            matches = lambda name: fnmatch.fnmatchcase(name, filter)  # noqa: E731

        functions = {
            name: function
            for name, function in self.functions.items()
            if matches(name)
        }
        if not functions:
            raise StackError(
                "no functions matching --filter/--regex were found in the stack file"
            )
        return Services(provider=self.provider, functions=functions)


def parse_stack(
    content: str,
    envsubst: bool = True,
    filter: str | None = None,
    regex: str | None = None,
) -> Services:
    """Parses stack file content into Services.

    Raises StackError on invalid YAML or an invalid stack definition.
    """
    if envsubst:
        content = os.path.expandvars(content)

    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise StackError(f"stack file is not valid YAML: {e}") from e

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise StackError("stack file must contain a mapping at the top level")

    functions: Dict[str, Any] = document.get("functions") or {}
    if not isinstance(functions, dict):
        raise StackError("'functions' must be a mapping of function name to definition")

    try:
        services = Services(
            provider=document.get("provider") or {},
            functions={
                name: {**(definition or {}), "name": name}
                for name, definition in functions.items()
            },
        )
    except (ValidationError, TypeError) as e:
        raise StackError(f"invalid stack file: {e}") from e

    return services.filtered(filter=filter, regex=regex)


def load_stack(
    path: str | Path,
    envsubst: bool = True,
    filter: str | None = None,
    regex: str | None = None,
) -> Services:
    """Loads and parses the stack file at path.

    Raises StackError if the file can't be read or parsed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise StackError(f"unable to read stack file {path}: {e}") from e

    return parse_stack(content, envsubst=envsubst, filter=filter, regex=regex)
