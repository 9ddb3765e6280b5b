import click

from . import _common, build


@click.group()
@click.version_option(
    version=_common.VERSION, package_name="faasbuild", prog_name="faasbuild"
)
@click.option(
    "--debug",
    is_flag=True,
    envvar="FAASBUILD_DEBUG",
    help="Show debug logs, detailed error information and stack traces",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    envvar="FAASBUILD_LOG_FORMAT",
    help="Format of the log lines written to stderr",
)
@click.option("--quiet", "-q", is_flag=True, help="Don't write log lines")
@click.pass_context
def cli(
    ctx: click.Context,
    debug: bool,
    log_format: str,
    quiet: bool,
):
    """
    faasbuild CLI.
    """
    ctx.obj = _common.Context.default(debug=debug, log_format=log_format, quiet=quiet)
    ctx.obj.configure_logging()


cli.add_command(build.build)
