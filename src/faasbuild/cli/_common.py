import importlib.metadata
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Literal

import click

from faasbuild.cli._configuration import get_nested_value, load_local_config
from faasbuild.stack import DEFAULT_STACK_FILE
from faasbuild.utils.logging import (
    configure_development_mode_logging,
    configure_logging_early,
    configure_production_mode_logging,
    suppress,
)

try:
    VERSION = importlib.metadata.version("faasbuild")
except importlib.metadata.PackageNotFoundError:
    VERSION = "unknown"


@dataclass
class Context:
    """Class for CLI context."""

    debug: bool = False
    log_format: Literal["console", "json"] = "console"
    quiet: bool = False
    local_config: dict[str, Any] = field(default_factory=dict)
    version: str = VERSION

    def configure_logging(self) -> None:
        configure_logging_early()
        level = logging.DEBUG if self.debug else logging.INFO
        if self.log_format == "json":
            configure_production_mode_logging(level)
        else:
            configure_development_mode_logging(level)
        if self.quiet:
            suppress()

    def resolve_parallel(self, parallel: int | None) -> int:
        """Resolve build parallelism from CLI args, environment, config, or default."""
        if parallel is not None:
            return parallel
        configured = get_nested_value(self.local_config, "build.parallel")
        return int(configured) if configured is not None else 1

    def resolve_shuttle_errors(self, shuttle_errors: bool | None) -> bool:
        """Resolve the failure policy from CLI args, config, or default."""
        if shuttle_errors is not None:
            return shuttle_errors
        configured = get_nested_value(self.local_config, "build.shuttle_errors")
        return bool(configured) if configured is not None else True

    def resolve_tag(self, tag: str | None) -> str:
        """Resolve the image tag mode from CLI args, config, or default."""
        return tag or get_nested_value(self.local_config, "build.tag") or "latest"

    def resolve_stack_file(self, yaml_file: str | None) -> str | None:
        """
        Resolve the stack file from CLI args, environment, or config.

        Falls back to stack.yml in the current directory when it exists, otherwise
        returns None which selects single function mode.
        """
        configured = yaml_file or get_nested_value(self.local_config, "build.yaml")
        if configured:
            return str(configured)
        if os.path.exists(DEFAULT_STACK_FILE):
            return DEFAULT_STACK_FILE
        return None

    @classmethod
    def default(
        cls,
        debug: bool = False,
        log_format: Literal["console", "json"] = "console",
        quiet: bool = False,
    ) -> "Context":
        """Create a Context with values from CLI args, environment, saved config, or defaults."""
        return cls(
            debug=debug,
            log_format=log_format,
            quiet=quiet,
            local_config=load_local_config(),
        )


"""Pass the Context object to the click command"""
pass_context = click.make_pass_decorator(Context)
