"""Tests for InputSanitizer and OutputRedactor."""

import pytest

from terraclient.errors import TerraclientError
from terraclient.security import InputSanitizer, OutputRedactor, SecurityError


class TestSanitizePath:
    def test_valid_directory(self, tmp_path):
        assert InputSanitizer.sanitize_path(str(tmp_path)) == str(tmp_path.resolve())

    def test_empty(self):
        with pytest.raises(SecurityError):
            InputSanitizer.sanitize_path("")

    def test_missing(self, tmp_path):
        with pytest.raises(SecurityError, match="does not exist"):
            InputSanitizer.sanitize_path(str(tmp_path / "nope"))

    def test_file_is_not_directory(self, tmp_path):
        f = tmp_path / "file"
        f.write_text("x")
        with pytest.raises(SecurityError, match="not a directory"):
            InputSanitizer.sanitize_path(str(f))


class TestVariableNames:
    @pytest.mark.parametrize("name", ["key", "_private", "instance-type", "a1"])
    def test_valid(self, name):
        assert InputSanitizer.sanitize_variable_name(name) == name

    @pytest.mark.parametrize("name", ["", "1abc", "bad name", "a=b", "-var"])
    def test_invalid(self, name):
        with pytest.raises(SecurityError):
            InputSanitizer.sanitize_variable_name(name)

    def test_too_long(self):
        with pytest.raises(SecurityError, match="too long"):
            InputSanitizer.sanitize_variable_name("a" * 256)


class TestCommandArgs:
    def test_safe(self):
        assert InputSanitizer.is_safe_command_arg("-var=key=value; rm -rf /") is True

    def test_null_byte(self):
        assert InputSanitizer.is_safe_command_arg("a\x00b") is False

    def test_too_long(self):
        assert InputSanitizer.is_safe_command_arg("a" * 10001) is False


def test_security_error_is_terraclient_error():
    assert issubclass(SecurityError, TerraclientError)


class TestOutputRedactor:
    def test_redacts_all_occurrences(self):
        redactor = OutputRedactor(["secret123"])
        assert redactor.redact("a secret123 b secret123") == "a [REDACTED] b [REDACTED]"

    def test_accepts_bytes(self):
        redactor = OutputRedactor([b"/keys/sa.json"])
        assert redactor.redact("reading /keys/sa.json") == "reading [REDACTED]"

    def test_ignores_empty_values(self):
        redactor = OutputRedactor([b"", ""])
        assert redactor.sensitive_values == []
        assert redactor.redact("unchanged") == "unchanged"

    def test_longest_value_first(self):
        redactor = OutputRedactor(["abc", "abcdef"])
        assert redactor.redact("xabcdefx") == "x[REDACTED]x"

    def test_empty_text(self):
        assert OutputRedactor(["x"]).redact("") == ""

    def test_clear(self):
        redactor = OutputRedactor(["secret"])
        redactor.clear()
        assert redactor.redact("secret") == "secret"
