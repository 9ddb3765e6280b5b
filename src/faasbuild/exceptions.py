"""Exception hierarchy for function image builds."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from faasbuild.builder.orchestrator import BuildOutcome


class FaasBuildError(Exception):
    """Base exception for all faasbuild errors with optional function context."""

    def __init__(
        self,
        message: str,
        function_name: str | None = None,
    ) -> None:
        """
        Initialize FaasBuildError.

        Args:
            message: Human-readable error message
            function_name: Optional name of the function the error relates to
        """
        self.message = message
        self.function_name = function_name
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with function context."""
        if self.function_name:
            return f"{self.message} (function: {self.function_name})"
        return self.message


class BuildArgError(FaasBuildError):
    """A --build-arg token could not be parsed."""

    pass


class MalformedBuildArgError(BuildArgError):
    """A build-arg token lacked the key=value separator."""

    def __init__(self) -> None:
        super().__init__("each build-arg must take the form key=value")


class EmptyBuildArgKeyError(BuildArgError):
    """A build-arg token had nothing before its separator."""

    def __init__(self) -> None:
        super().__init__("build-arg must have a non-empty key")


class StackError(FaasBuildError):
    """The stack file could not be loaded or selected from."""

    pass


class MissingLanguageError(FaasBuildError):
    """One or more functions have no language/template assigned."""

    def __init__(self, function_names: Sequence[str]) -> None:
        self.function_names = list(function_names)
        super().__init__(
            "please provide a language for function(s): "
            + ", ".join(self.function_names)
        )


class ImageBuildError(FaasBuildError):
    """Raised by a build operation to report an ordinary build failure."""

    pass


class BuildRunError(FaasBuildError):
    """Aggregated failure of a build run, one entry per failing function."""

    def __init__(self, failures: Sequence[BuildOutcome]) -> None:
        self.failures = list(failures)
        lines = [f"{len(self.failures)} function build(s) failed:"]
        for outcome in self.failures:
            lines.append(f"  {outcome.function_name}: {outcome.error}")
        super().__init__("\n".join(lines))

    @property
    def function_names(self) -> list[str]:
        return [outcome.function_name for outcome in self.failures]
