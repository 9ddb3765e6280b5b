from typing import Dict, Iterable

from faasbuild.exceptions import EmptyBuildArgKeyError, MalformedBuildArgError


def parse_build_args(tokens: Iterable[str]) -> Dict[str, str]:
    """Parses key=value build-arg tokens into a mapping.

    Only the first "=" separates key from value, so "k=v=z" maps "k" to "v=z".
    The last occurrence of a repeated key wins.

    Raises MalformedBuildArgError if a token has no "=".
    Raises EmptyBuildArgKeyError if a token's key is empty.
    """
    build_args: Dict[str, str] = {}
    for token in tokens:
        key, separator, value = token.partition("=")
        if not separator:
            raise MalformedBuildArgError()
        if not key:
            raise EmptyBuildArgKeyError()
        build_args[key] = value
    return build_args
