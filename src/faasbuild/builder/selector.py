from typing import List, Mapping

from faasbuild.stack import FunctionSpec


def functions_missing_language(functions: Mapping[str, FunctionSpec]) -> List[str]:
    """Returns sorted names of the functions that have no language assigned.

    A function without a language can't be built no matter its skip_build flag.
    """
    return sorted(name for name, function in functions.items() if not function.language)


def select_functions(functions: Mapping[str, FunctionSpec]) -> List[FunctionSpec]:
    """Returns every function that should be built, each exactly once.

    Functions marked skip_build and functions without a language are left out.
    Callers that must treat a missing language as an error check
    functions_missing_language() first.
    """
    return [
        function
        for function in functions.values()
        if function.language and not function.skip_build
    ]
