"""Default single function build operation backed by the docker CLI."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Dict, List

import structlog

from faasbuild.exceptions import ImageBuildError

logger = structlog.get_logger(module=__name__)

TAG_MODES = ("latest", "sha", "branch", "describe")


def _run(cmd: list[str], *, cwd: Path | None = None) -> str:
    """
    Run a subprocess command and return its combined output, raising an ImageBuildError on failure.
    """
    try:
        completed = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise ImageBuildError(f"Command not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        raise ImageBuildError(f"Command failed: {' '.join(cmd)}\n\n{e.stdout}") from e
    return completed.stdout


def _git(args: list[str], handler: str) -> str:
    return _run(["git", *args], cwd=Path(handler)).strip()


def resolve_image_tag(image: str, tag: str, handler: str) -> str:
    """
    Return the image reference to build for the given tag mode.

    "latest" keeps the image as declared. The other modes append git metadata of the
    handler directory to the declared tag, e.g. example/fn:0.1 -> example/fn:0.1-3f2a9c1.
    """
    if tag not in TAG_MODES:
        raise ImageBuildError(f"Unsupported tag mode: {tag}")
    if tag == "latest":
        return image

    # A colon after the last slash separates the tag, earlier ones belong to a registry port.
    repository, _, declared_tag = image.rpartition(":")
    if not repository or "/" in declared_tag:
        repository, declared_tag = image, "latest"

    if tag == "describe":
        suffix = _git(["describe", "--tags", "--always", "--dirty"], handler)
    else:
        suffix = _git(["rev-parse", "--short", "HEAD"], handler)
        if tag == "branch":
            branch = _git(["rev-parse", "--abbrev-ref", "HEAD"], handler)
            suffix = f"{branch.replace('/', '-')}-{suffix}"

    return f"{repository}:{declared_tag}-{suffix}"


def docker_build_command(
    image: str,
    handler: str,
    nocache: bool,
    squash: bool,
    build_args: Dict[str, str],
    build_options: List[str],
) -> list[str]:
    cmd = ["docker", "build", "-t", image]
    if nocache:
        cmd.append("--no-cache")
    if squash:
        cmd.append("--squash")
    for key, value in build_args.items():
        cmd.extend(["--build-arg", f"{key}={value}"])
    if build_options:
        cmd.extend(["--build-arg", f"ADDITIONAL_PACKAGE={' '.join(build_options)}"])
    cmd.append(handler)
    return cmd


def build_image(
    image: str,
    handler: str,
    function_name: str,
    language: str,
    nocache: bool,
    squash: bool,
    shrinkwrap: bool,
    build_args: Dict[str, str],
    build_options: List[str],
    tag: str,
) -> None:
    """
    Build the image of one function from its handler directory with `docker build`.

    With shrinkwrap the build context is left in place and docker isn't invoked.
    """
    if not Path(handler).is_dir():
        raise ImageBuildError(f"Handler directory not found: {handler}", function_name)

    if shrinkwrap:
        logger.info(
            "shrink-wrapped build context",
            function_name=function_name,
            context=handler,
        )
        return

    image = resolve_image_tag(image, tag, handler)
    cmd = docker_build_command(image, handler, nocache, squash, build_args, build_options)
    logger.debug("running docker build", function_name=function_name, language=language, cmd=cmd)
    _run(cmd)
