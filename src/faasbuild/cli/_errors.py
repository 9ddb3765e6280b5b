"""Error handling utilities for the CLI."""

from __future__ import annotations

import sys
import traceback
from typing import NoReturn

import click

from faasbuild.builder.orchestrator import BuildStatus
from faasbuild.cli._common import Context
from faasbuild.exceptions import BuildRunError, FaasBuildError, MissingLanguageError


def handle_build_error(e: FaasBuildError, ctx: Context) -> NoReturn:
    """
    Report a build error with user-friendly messages and abort the command.

    Args:
        e: The error raised while preparing or running the build
        ctx: The CLI context
    """
    if isinstance(e, BuildRunError):
        _handle_build_run_error(e, ctx)
    elif isinstance(e, MissingLanguageError):
        _handle_missing_language_error(e)

    if ctx.debug:
        click.echo("", err=True)
        click.echo("Stack trace:", err=True)
        traceback.print_exception(type(e), e, e.__traceback__, file=sys.stderr)
    elif isinstance(e, BuildRunError):
        click.echo("", err=True)
        click.echo(
            "For technical details and stack traces, run with --debug or set FAASBUILD_DEBUG=1",
            err=True,
        )

    raise click.ClickException(e.message) from e


def _handle_build_run_error(e: BuildRunError, ctx: Context) -> None:
    """Print one line per failed function and, in debug mode, the traceback of aborted builds."""
    click.echo("", err=True)
    click.secho("Failed function builds:", err=True, bold=True)
    for outcome in e.failures:
        click.secho(f"  • {outcome.function_name}: {outcome.error}", err=True, fg="red")
        if ctx.debug and outcome.status == BuildStatus.ABORTED and outcome.traceback:
            click.echo(outcome.traceback, err=True)


def _handle_missing_language_error(e: MissingLanguageError) -> None:
    click.echo(
        "Every function needs a language (the 'lang' field in the stack file).",
        err=True,
    )
    for name in e.function_names:
        click.echo(f"  • {name}", err=True)
