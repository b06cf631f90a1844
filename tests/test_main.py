"""Tests for the main entry point (__main__.py)."""

from unittest.mock import patch

import pytest

from httpdoc.__main__ import main
from httpdoc.errors import BodyFormatError

MESSY = (
    "### Login\n"
    "POST https://example.com/login\n"
    "content-type: application/json\n"
    "\n"
    '{"user":"{{user}}","password":{{password}}}\n'
)

CANONICAL = (
    "### Login\n"
    "\n"
    "POST https://example.com/login HTTP/1.1\n"
    "Content-Type: application/json\n"
    "\n"
    "{\n"
    '  "user": "{{user}}",\n'
    '  "password": {{password}}\n'
    "}\n"
)


class TestMain:
    """Tests for the main function."""

    def test_missing_file_exits(self):
        """parse_cli calls sys.exit(1) when the file doesn't exist."""
        with pytest.raises(SystemExit):
            main(["/nonexistent/api.http"])

    def test_prints_canonical_text(self, tmp_path, capsys):
        f = tmp_path / "api.http"
        f.write_text(MESSY)
        assert main([str(f)]) == 0
        assert capsys.readouterr().out == CANONICAL

    def test_invalid_document_returns_error(self, tmp_path, capsys):
        f = tmp_path / "bad.http"
        f.write_text("GET\n")
        assert main([str(f)]) == 2
        assert "not a valid .http document" in capsys.readouterr().err

    def test_check_reports_changes(self, tmp_path, capsys):
        f = tmp_path / "api.http"
        f.write_text(MESSY)
        assert main(["--check", str(f)]) == 1
        assert "Would reformat" in capsys.readouterr().err
        assert f.read_text() == MESSY

    def test_check_passes_on_canonical_file(self, tmp_path):
        f = tmp_path / "api.http"
        f.write_text(CANONICAL)
        assert main(["--check", str(f)]) == 0

    def test_write_rewrites_file(self, tmp_path):
        f = tmp_path / "api.http"
        f.write_text(MESSY)
        assert main(["--write", str(f)]) == 0
        assert f.read_text() == CANONICAL

    def test_no_format_body(self, tmp_path, capsys):
        f = tmp_path / "api.http"
        f.write_text(MESSY)
        assert main(["--no-format-body", str(f)]) == 0
        assert '{"user":"{{user}}","password":{{password}}}' in capsys.readouterr().out

    def test_malformed_body_is_a_warning(self, tmp_path, capsys):
        f = tmp_path / "api.http"
        f.write_text(MESSY.replace("{{password}}}", "}"))
        assert main([str(f)]) == 0
        captured = capsys.readouterr()
        assert "[!]" in captured.err
        assert '{"user":"{{user}}","password":}' in captured.out

    def test_strict_malformed_body_returns_error(self, tmp_path):
        f = tmp_path / "api.http"
        f.write_text(MESSY.replace("{{password}}}", "}"))
        assert main(["--strict", str(f)]) == 2

    @patch("httpdoc.__main__.load_document_file")
    def test_read_error_returns_error(self, mock_load, tmp_path):
        f = tmp_path / "api.http"
        f.write_text(MESSY)
        mock_load.side_effect = PermissionError("denied")
        assert main([str(f)]) == 2

    @patch("httpdoc.__main__.build_result")
    def test_build_error_returns_error(self, mock_build, tmp_path):
        f = tmp_path / "api.http"
        f.write_text(MESSY)
        mock_build.side_effect = BodyFormatError("json", ValueError("bad"), block_index=0)
        assert main([str(f)]) == 2
