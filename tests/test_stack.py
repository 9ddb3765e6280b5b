import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from faasbuild.exceptions import StackError
from faasbuild.stack import FunctionSpec, Services, load_stack, parse_stack

STACK = """
provider:
  name: openfaas
  gateway: http://127.0.0.1:8080
functions:
  hello-python:
    lang: python3
    handler: ./hello-python
    image: example/hello-python:${TAG:-latest}
    build_args:
      PYTHON_VERSION: 3.12
      DEBUG: true
    build_options:
      - dev
  hello-go:
    lang: go
    handler: ./hello-go
    image: example/hello-go:latest
  legacy:
    lang: dockerfile
    handler: ./legacy
    image: example/legacy:latest
    skip_build: true
"""


class TestParseStack(unittest.TestCase):
    def test_parses_functions(self):
        services = parse_stack(STACK, envsubst=False)
        self.assertEqual(services.provider.name, "openfaas")
        self.assertEqual(services.provider.gateway, "http://127.0.0.1:8080")
        self.assertEqual(list(services.functions), ["hello-python", "hello-go", "legacy"])

        function = services.functions["hello-python"]
        self.assertEqual(function.name, "hello-python")
        self.assertEqual(function.language, "python3")
        self.assertEqual(function.handler, "./hello-python")
        self.assertEqual(function.build_args, {"PYTHON_VERSION": "3.12", "DEBUG": "True"})
        self.assertEqual(function.build_options, ["dev"])
        self.assertFalse(function.skip_build)
        self.assertTrue(services.functions["legacy"].skip_build)

    def test_missing_lang_parses_as_empty_language(self):
        services = parse_stack("functions:\n  fn:\n    handler: ./fn\n    image: fn\n")
        self.assertEqual(services.functions["fn"].language, "")

    def test_envsubst(self):
        with patch.dict(os.environ, {"IMAGE_TAG": "1.0"}):
            services = parse_stack(
                "functions:\n  fn:\n    lang: go\n    image: example/fn:${IMAGE_TAG}\n"
            )
        self.assertEqual(services.functions["fn"].image, "example/fn:1.0")

    def test_no_envsubst(self):
        with patch.dict(os.environ, {"IMAGE_TAG": "1.0"}):
            services = parse_stack(
                "functions:\n  fn:\n    lang: go\n    image: example/fn:${IMAGE_TAG}\n",
                envsubst=False,
            )
        self.assertEqual(services.functions["fn"].image, "example/fn:${IMAGE_TAG}")

    def test_empty_document(self):
        self.assertEqual(parse_stack("").functions, {})

    def test_invalid_yaml(self):
        with self.assertRaises(StackError):
            parse_stack("functions: [unclosed")

    def test_functions_must_be_mapping(self):
        with self.assertRaises(StackError):
            parse_stack("functions:\n  - fn\n")

    def test_invalid_function_definition(self):
        with self.assertRaises(StackError):
            parse_stack("functions:\n  fn:\n    skip_build: [1, 2]\n")


class TestFilter(unittest.TestCase):
    def setUp(self):
        self.services = parse_stack(STACK, envsubst=False)

    def test_filter_wildcard(self):
        filtered = self.services.filtered(filter="hello-*")
        self.assertEqual(sorted(filtered.functions), ["hello-go", "hello-python"])

    def test_regex(self):
        filtered = self.services.filtered(regex="go$")
        self.assertEqual(list(filtered.functions), ["hello-go"])

    def test_no_filter_returns_everything(self):
        self.assertEqual(len(self.services.filtered().functions), 3)

    def test_filter_and_regex_together(self):
        with self.assertRaises(StackError) as cm:
            self.services.filtered(filter="hello-*", regex="go")
        self.assertEqual(cm.exception.message, "pass in a regex or a filter, not both")

    def test_nothing_matches(self):
        with self.assertRaises(StackError):
            self.services.filtered(filter="nope")

    def test_invalid_regex(self):
        with self.assertRaises(StackError):
            self.services.filtered(regex="(")

    def test_filter_is_applied_while_parsing(self):
        services = parse_stack(
            "functions:\n  a:\n    lang: go\n  b:\n    image: b\n", filter="a"
        )
        self.assertEqual(list(services.functions), ["a"])


class TestLoadStack(unittest.TestCase):
    def test_load_from_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "stack.yml"
            path.write_text(STACK, encoding="utf-8")
            services = load_stack(path, filter="legacy")
        self.assertEqual(list(services.functions), ["legacy"])

    def test_missing_file(self):
        with self.assertRaises(StackError):
            load_stack("/nonexistent/stack.yml")


class TestFunctionSpec(unittest.TestCase):
    def test_language_by_field_name_or_alias(self):
        self.assertEqual(FunctionSpec(name="a", language="go").language, "go")
        self.assertEqual(FunctionSpec(name="a", lang="go").language, "go")

    def test_services_default_provider(self):
        self.assertEqual(Services().provider.name, "openfaas")


if __name__ == "__main__":
    unittest.main()
