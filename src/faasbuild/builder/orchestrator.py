"""Parallel build of function images.

A fixed number of workers take functions from a shared queue and call the
supplied build operation for each. A failing or crashing build only affects
its own function; all failures are reported together when the run ends.
"""

import queue
import threading
import traceback
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Mapping, Protocol, Tuple

import structlog

from faasbuild.exceptions import BuildRunError, ImageBuildError, MissingLanguageError
from faasbuild.stack import FunctionSpec, Services

from .selector import functions_missing_language, select_functions

logger = structlog.get_logger(module=__name__)


class BuildImageFunc(Protocol):
    """Builds the image of a single function.

    Returns None on success. Raises ImageBuildError to report a build failure.
    Any other exception is treated as an abnormal termination of the build.
    """

    def __call__(
        self,
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
    ) -> None: ...


@dataclass(frozen=True)
class BuildPolicy:
    """Run level build configuration.

    Everything except parallelism and shuttle_errors is passed through to the
    build operation unchanged.
    """

    parallelism: int = 1
    # When False no new builds are started after the first failure.
    shuttle_errors: bool = True
    nocache: bool = False
    squash: bool = False
    shrinkwrap: bool = False
    build_args: Mapping[str, str] = field(default_factory=dict)
    build_options: Tuple[str, ...] = ()
    tag: str = "latest"

    @property
    def worker_count(self) -> int:
        return max(1, self.parallelism)


class BuildStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass
class BuildOutcome:
    function_name: str
    status: BuildStatus
    error: str | None = None
    # Formatted traceback, set only for aborted builds.
    traceback: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == BuildStatus.SUCCEEDED


OutcomeCallback = Callable[[BuildOutcome], None]


def _merged_build_args(function: FunctionSpec, policy: BuildPolicy) -> Dict[str, str]:
    build_args: Dict[str, str] = dict(function.build_args)
    build_args.update(policy.build_args)
    return build_args


def _merged_build_options(function: FunctionSpec, policy: BuildPolicy) -> List[str]:
    # dict.fromkeys drops duplicates and keeps first-seen order.
    return list(dict.fromkeys([*function.build_options, *policy.build_options]))


def _describe_exception(e: BaseException) -> str:
    """Returns "ExceptionType: message" for e.

    Doesn't raise Exception subclasses, even when str(e) fails.
    """
    try:
        message = str(e)
    except Exception:  # pylint: disable=broad-except
        message = f"<unprintable {type(e).__name__} object>"
    return f"{type(e).__name__}: {message}"


class _BuildRun:
    """State shared by the workers of one run."""

    def __init__(
        self,
        functions: List[FunctionSpec],
        policy: BuildPolicy,
        build_image: BuildImageFunc,
        on_outcome: OutcomeCallback | None,
    ):
        self._policy: BuildPolicy = policy
        self._build_image: BuildImageFunc = build_image
        self._on_outcome: OutcomeCallback | None = on_outcome
        self._tasks: queue.SimpleQueue[FunctionSpec] = queue.SimpleQueue()
        for function in functions:
            self._tasks.put(function)
        self._stop_dispatch: threading.Event = threading.Event()
        # Guards task retrieval, the stop flag and the outcomes list.
        self._lock: threading.Lock = threading.Lock()
        self._outcomes: List[BuildOutcome] = []

    @property
    def outcomes(self) -> List[BuildOutcome]:
        with self._lock:
            return list(self._outcomes)

    def execute(self) -> None:
        worker_count: int = self._policy.worker_count
        with ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix="BuildWorker"
        ) as pool:
            workers: List[Future] = [
                pool.submit(self._worker) for _ in range(worker_count)
            ]
            for worker in workers:
                worker.result()

    def _next_task(self) -> FunctionSpec | None:
        with self._lock:
            if self._stop_dispatch.is_set():
                return None
            try:
                return self._tasks.get_nowait()
            except queue.Empty:
                return None

    def _worker(self) -> None:
        while True:
            function: FunctionSpec | None = self._next_task()
            if function is None:
                return
            self._record(self._build_one(function))

    def _build_one(self, function: FunctionSpec) -> BuildOutcome:
        """Builds one function and converts every failure into an outcome.

        Doesn't raise Exception subclasses.
        """
        build_logger = logger.bind(function_name=function.name, image=function.image)
        build_logger.info("build started", language=function.language)
        try:
            self._build_image(
                function.image,
                function.handler,
                function.name,
                function.language,
                self._policy.nocache,
                self._policy.squash,
                self._policy.shrinkwrap,
                _merged_build_args(function, self._policy),
                _merged_build_options(function, self._policy),
                self._policy.tag,
            )
        except ImageBuildError as e:
            build_logger.error("build failed", error=e.message)
            return BuildOutcome(
                function_name=function.name,
                status=BuildStatus.FAILED,
                error=e.message,
            )
        except Exception as e:  # pylint: disable=broad-except
            description: str = _describe_exception(e)
            formatted_traceback: str = "".join(traceback.format_exception(e))
            build_logger.error(
                "build aborted", error=description, traceback=formatted_traceback
            )
            return BuildOutcome(
                function_name=function.name,
                status=BuildStatus.ABORTED,
                error=f"build aborted: {description}",
                traceback=formatted_traceback,
            )

        build_logger.info("build succeeded")
        return BuildOutcome(function_name=function.name, status=BuildStatus.SUCCEEDED)

    def _record(self, outcome: BuildOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)
            if (
                not outcome.succeeded
                and not self._policy.shuttle_errors
                and not self._stop_dispatch.is_set()
            ):
                logger.warning(
                    "stopping dispatch of new builds after failure",
                    function_name=outcome.function_name,
                )
                self._stop_dispatch.set()
            if self._on_outcome is not None:
                try:
                    self._on_outcome(outcome)
                except Exception as e:  # pylint: disable=broad-except
                    logger.error(
                        "outcome callback failed",
                        function_name=outcome.function_name,
                        error=_describe_exception(e),
                    )


def run(
    functions: Mapping[str, FunctionSpec],
    policy: BuildPolicy,
    build_image: BuildImageFunc,
    on_outcome: OutcomeCallback | None = None,
) -> None:
    """Builds every eligible function with at most policy.parallelism builds at a time.

    on_outcome is called once per finished build, from the worker thread, while
    holding the run lock. Exceptions it raises are logged and otherwise ignored.

    Raises MissingLanguageError before any build starts if a function has no language.
    Raises BuildRunError listing every failed function once all started builds finish.
    """
    missing_language: List[str] = functions_missing_language(functions)
    if missing_language:
        raise MissingLanguageError(missing_language)

    eligible: List[FunctionSpec] = select_functions(functions)
    skipped: int = len(functions) - len(eligible)
    if not eligible:
        logger.info("no functions to build", skipped=skipped)
        return

    logger.info(
        "dispatching builds",
        functions=len(eligible),
        skipped=skipped,
        workers=policy.worker_count,
        shuttle_errors=policy.shuttle_errors,
    )
    build_run = _BuildRun(eligible, policy, build_image, on_outcome)
    build_run.execute()

    outcomes: List[BuildOutcome] = build_run.outcomes
    failures: List[BuildOutcome] = [o for o in outcomes if not o.succeeded]
    logger.info(
        "build run finished",
        succeeded=len(outcomes) - len(failures),
        failed=len(failures),
        not_started=len(eligible) - len(outcomes),
    )
    if failures:
        raise BuildRunError(failures)


def build(
    services: Services | Mapping[str, FunctionSpec],
    parallelism: int,
    shuttle_errors: bool,
    build_image: BuildImageFunc,
    policy: BuildPolicy | None = None,
    on_outcome: OutcomeCallback | None = None,
) -> None:
    """Builds the functions declared in services.

    parallelism and shuttle_errors override the corresponding policy fields.
    See run() for the raised exceptions.
    """
    functions: Mapping[str, FunctionSpec] = (
        services.functions if isinstance(services, Services) else services
    )
    policy = replace(
        policy or BuildPolicy(),
        parallelism=parallelism,
        shuttle_errors=shuttle_errors,
    )
    run(functions, policy, build_image, on_outcome=on_outcome)
