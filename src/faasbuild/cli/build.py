from typing import Tuple

import click

from faasbuild.builder import orchestrator
from faasbuild.builder.build_args import parse_build_args
from faasbuild.builder.docker import TAG_MODES, build_image
from faasbuild.builder.orchestrator import BuildOutcome, BuildPolicy
from faasbuild.cli._common import Context, pass_context
from faasbuild.cli._errors import handle_build_error
from faasbuild.exceptions import FaasBuildError
from faasbuild.stack import FunctionSpec, Services, load_stack


@click.command(
    short_help="Builds the images of the functions declared in a stack file"
)
@click.option(
    "-f",
    "--yaml",
    "yaml_file",
    envvar="FAASBUILD_YAML",
    help="Path to the stack file describing the functions (default: stack.yml if present)",
)
@click.option("--image", help="Docker image name to build (single function mode)")
@click.option("--handler", help="Directory with the handler of the function (single function mode)")
@click.option("--name", help="Name of the function (single function mode)")
@click.option("--lang", help="Programming language template (single function mode)")
@click.option("--no-cache", "nocache", is_flag=True, default=False, help="Do not use the Docker cache")
@click.option("--squash", is_flag=True, default=False, help="Squash the image layers")
@click.option(
    "--shrinkwrap",
    is_flag=True,
    default=False,
    help="Prepare the build contexts without running the builds",
)
@click.option(
    "--parallel",
    type=click.IntRange(min=1),
    envvar="FAASBUILD_PARALLEL",
    default=None,
    help="Number of images to build at the same time (default: 1)",
)
@click.option(
    "-b",
    "--build-arg",
    "build_arg_tokens",
    multiple=True,
    help="Build argument in the form key=value, can be repeated",
)
@click.option(
    "--build-option",
    "build_options",
    multiple=True,
    help="Build option passed to the image build, can be repeated",
)
@click.option(
    "--tag",
    type=click.Choice(TAG_MODES),
    default=None,
    help="How to tag the built images (default: latest)",
)
@click.option("--filter", "filter_pattern", help="Wildcard to select functions by name")
@click.option("--regex", help="Regular expression to select functions by name")
@click.option(
    "--shuttle-errors/--fail-fast",
    default=None,
    help="Keep building after a failure, or stop starting new builds after the first one",
)
@click.option(
    "--envsubst/--no-envsubst",
    default=True,
    help="Substitute environment variables in the stack file",
)
@pass_context
def build(
    ctx: Context,
    yaml_file: str | None,
    image: str | None,
    handler: str | None,
    name: str | None,
    lang: str | None,
    nocache: bool,
    squash: bool,
    shrinkwrap: bool,
    parallel: int | None,
    build_arg_tokens: Tuple[str, ...],
    build_options: Tuple[str, ...],
    tag: str | None,
    filter_pattern: str | None,
    regex: str | None,
    shuttle_errors: bool | None,
    envsubst: bool,
):
    """Builds function images, several at a time when --parallel is above 1."""
    try:
        build_args = parse_build_args(build_arg_tokens)
        stack_file = ctx.resolve_stack_file(yaml_file)
        if stack_file is not None:
            services = load_stack(
                stack_file, envsubst=envsubst, filter=filter_pattern, regex=regex
            )
        else:
            services = _single_function_services(image, handler, name, lang)
    except FaasBuildError as e:
        handle_build_error(e, ctx)

    policy = BuildPolicy(
        parallelism=ctx.resolve_parallel(parallel),
        shuttle_errors=ctx.resolve_shuttle_errors(shuttle_errors),
        nocache=nocache,
        squash=squash,
        shrinkwrap=shrinkwrap,
        build_args=build_args,
        build_options=tuple(build_options),
        tag=ctx.resolve_tag(tag),
    )

    to_build = 0
    for function in services.functions.values():
        if function.skip_build:
            click.echo(f"⏭️  Skipping build of {function.name}")
        else:
            to_build += 1

    click.echo(
        f"📦 Building {to_build} function(s) with up to "
        f"{policy.worker_count} build(s) at a time..."
    )
    try:
        orchestrator.build(
            services,
            policy.parallelism,
            policy.shuttle_errors,
            build_image,
            policy=policy,
            on_outcome=_print_outcome,
        )
    except FaasBuildError as e:
        handle_build_error(e, ctx)

    click.secho("\n✅ All images built successfully")


def _single_function_services(
    image: str | None, handler: str | None, name: str | None, lang: str | None
) -> Services:
    if not image:
        raise click.UsageError("please provide a valid --image name for your Docker image")
    if not handler:
        raise click.UsageError("please provide the full path to your function's handler")
    if not name:
        raise click.UsageError("please provide the deployed --name of your function")
    if not lang:
        raise click.UsageError("please provide a valid --lang or 'Dockerfile' for your function")

    function = FunctionSpec(name=name, handler=handler, image=image, language=lang)
    return Services(functions={name: function})


def _print_outcome(outcome: BuildOutcome) -> None:
    if outcome.succeeded:
        click.secho(f"✅ {outcome.function_name} built", fg="green")
    else:
        click.secho(
            f"❌ {outcome.function_name} {outcome.status.value}: {outcome.error}",
            err=True,
            fg="red",
        )
