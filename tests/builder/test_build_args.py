import unittest

from faasbuild.builder.build_args import parse_build_args
from faasbuild.exceptions import (
    BuildArgError,
    EmptyBuildArgKeyError,
    MalformedBuildArgError,
)


class TestParseBuildArgs(unittest.TestCase):
    def test_valid_parts(self):
        self.assertEqual(parse_build_args(["k=v"]), {"k": "v"})

    def test_no_separator(self):
        with self.assertRaises(MalformedBuildArgError) as cm:
            parse_build_args(["kv"])
        self.assertEqual(str(cm.exception), "each build-arg must take the form key=value")

    def test_empty_key(self):
        with self.assertRaises(EmptyBuildArgKeyError) as cm:
            parse_build_args(["=v"])
        self.assertEqual(str(cm.exception), "build-arg must have a non-empty key")

    def test_multiple_separators(self):
        self.assertEqual(parse_build_args(["k=v=z"]), {"k": "v=z"})

    def test_empty_value_is_allowed(self):
        self.assertEqual(parse_build_args(["k="]), {"k": ""})

    def test_one_entry_per_unique_key(self):
        mapped = parse_build_args(["a=1", "b=2", "a=3", "c=x=y"])
        self.assertEqual(mapped, {"a": "3", "b": "2", "c": "x=y"})

    def test_no_tokens(self):
        self.assertEqual(parse_build_args([]), {})

    def test_stops_at_first_invalid_token(self):
        # The empty key comes before the malformed token so it is the one reported.
        with self.assertRaises(EmptyBuildArgKeyError):
            parse_build_args(["a=1", "=v", "kv"])

    def test_errors_share_base_class(self):
        for tokens in (["kv"], ["=v"]):
            with self.subTest(tokens=tokens):
                with self.assertRaises(BuildArgError):
                    parse_build_args(tokens)


if __name__ == "__main__":
    unittest.main()
