"""
Tests for the hyc and hybuild command-line tools
================================================

The CLIs are exercised through click's CliRunner. External tools are
replaced with stand-in scripts configured through the SHPILLER_NASM and
SHPILLER_LD environment variables, so these tests do not need nasm or
ld installed.
"""

import os
import stat
from pathlib import Path

import pytest
from click.testing import CliRunner

from shpiller.cli import hyc, hybuild
from shpiller.cli.errors import ExitCode
from shpiller.cli.hybuild import resolve_output_path


# =============================================================================
# Helper Functions
# =============================================================================

def write_source(directory: Path, text: str, name: str = "prog.hy") -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path


def fake_tool(directory: Path, name: str, body: str) -> Path:
    """
    Create an executable shell script standing in for nasm or ld.

    The script receives the same arguments the real tool would.
    """
    script = directory / name
    script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return script


# Writes the file named after -o, like both nasm and ld do
COPY_TO_OUTPUT = 'while [ "$#" -gt 0 ]; do if [ "$1" = "-o" ]; then shift; echo built > "$1"; fi; shift; done'

posix_only = pytest.mark.skipif(os.name != "posix", reason="stand-in tools are shell scripts")


# =============================================================================
# hyc
# =============================================================================

class TestHyc:
    """Tests for the hyc compiler CLI."""

    def test_compiles_to_default_output(self, tmp_path):
        source = write_source(tmp_path, "exit(42);")
        result = CliRunner().invoke(hyc.main, [str(source)])
        assert result.exit_code == ExitCode.SUCCESS
        asm = (tmp_path / "prog.asm").read_text(encoding="utf-8")
        assert "_start:" in asm
        assert "Compiled" in result.output

    def test_explicit_output(self, tmp_path):
        source = write_source(tmp_path, "exit(1);")
        out = tmp_path / "custom.s"
        result = CliRunner().invoke(hyc.main, [str(source), "-o", str(out)])
        assert result.exit_code == 0
        assert out.exists()

    def test_no_comments(self, tmp_path):
        source = write_source(tmp_path, "let x = 1; exit(x);")
        CliRunner().invoke(hyc.main, [str(source), "--no-comments"])
        assert ";" not in (tmp_path / "prog.asm").read_text(encoding="utf-8")

    def test_ast_dump(self, tmp_path):
        source = write_source(tmp_path, "let x = 1; exit(x + 2);")
        result = CliRunner().invoke(hyc.main, [str(source), "--ast"])
        assert result.exit_code == 0
        assert "Let x = 1" in result.output
        assert "Exit (x + 2)" in result.output
        assert not (tmp_path / "prog.asm").exists()

    def test_token_dump(self, tmp_path):
        source = write_source(tmp_path, "exit(7);")
        result = CliRunner().invoke(hyc.main, [str(source), "--tokens"])
        assert result.exit_code == 0
        assert "Token(EXIT, 'exit', 1:1)" in result.output
        assert "Token(INT_LITERAL, 7, 1:6)" in result.output
        assert "Token(EOF, 1:9)" in result.output

    def test_verbose(self, tmp_path):
        source = write_source(tmp_path, "exit(7);")
        result = CliRunner().invoke(hyc.main, [str(source), "-v"])
        assert "Tokenized: 6 tokens" in result.output
        assert "Parsed: 1 top-level statements" in result.output

    def test_compile_error_exit_code(self, tmp_path):
        source = write_source(tmp_path, "let a = 1;\nexit(b);")
        result = CliRunner().invoke(hyc.main, [str(source)])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "prog.hy:2:6: error: undeclared identifier 'b'" in result.output
        assert not (tmp_path / "prog.asm").exists()

    def test_missing_input(self, tmp_path):
        result = CliRunner().invoke(hyc.main, [str(tmp_path / "none.hy")])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_version(self):
        result = CliRunner().invoke(hyc.main, ["--version"])
        assert result.exit_code == 0
        assert "hyc" in result.output

    def test_token_dump_of_unparsable_file(self, tmp_path):
        """The token stream is shown even when the file does not parse."""
        source = write_source(tmp_path, "exit(1 +);")
        result = CliRunner().invoke(hyc.main, [str(source), "--tokens"])
        assert result.exit_code == 0, result.output
        assert "Token(PLUS, '+', 1:8)" in result.output
        assert "Token(EOF, 1:11)" in result.output

    def test_ast_dump_reports_parse_errors(self, tmp_path):
        source = write_source(tmp_path, "exit(1 +);")
        result = CliRunner().invoke(hyc.main, [str(source), "--ast"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "expected expression, found ')'" in result.output

    def test_deep_nesting_is_a_compile_error(self, tmp_path):
        source = write_source(tmp_path, "exit(" + "(" * 300 + "1" + ")" * 300 + ");")
        result = CliRunner().invoke(hyc.main, [str(source)])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "nesting too deep" in result.output
        assert "Internal error" not in result.output

    def test_refuses_to_overwrite_input(self, tmp_path):
        source = write_source(tmp_path, "exit(1);", name="prog.asm")
        result = CliRunner().invoke(hyc.main, [str(source)])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "would overwrite the input file" in result.output
        assert source.read_text(encoding="utf-8") == "exit(1);"


# =============================================================================
# hybuild
# =============================================================================

class TestResolveOutputPath:
    """Tests for resolve_output_path()."""

    def test_explicit_output(self):
        assert resolve_output_path(Path("out"), Path("prog.hy")) == Path("out")

    def test_strips_extension(self):
        assert resolve_output_path(None, Path("dir/prog.hy")) == Path("dir/prog")

    def test_no_extension(self):
        """A source without extension must not be overwritten."""
        assert resolve_output_path(None, Path("prog")) == Path("prog.out")


class TestHybuild:
    """Tests for the hybuild pipeline with stand-in tools."""

    def test_asm_only(self, tmp_path):
        source = write_source(tmp_path, "exit(3);")
        result = CliRunner().invoke(hybuild.main, [str(source), "-S"])
        assert result.exit_code == 0
        assert (tmp_path / "prog.asm").exists()
        assert not (tmp_path / "prog").exists()

    @posix_only
    def test_full_pipeline(self, tmp_path, monkeypatch):
        nasm = fake_tool(tmp_path, "fake-nasm", COPY_TO_OUTPUT)
        ld = fake_tool(tmp_path, "fake-ld", COPY_TO_OUTPUT)
        monkeypatch.setenv("SHPILLER_NASM", str(nasm))
        monkeypatch.setenv("SHPILLER_LD", str(ld))

        source = write_source(tmp_path, "exit(3);")
        result = CliRunner().invoke(hybuild.main, [str(source), "-v"])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "prog").read_text().strip() == "built"
        assert "[1/3] Compiling" in result.output
        assert "[2/3] Assembling" in result.output
        assert "[3/3] Linking" in result.output
        # Intermediates went to a temporary directory
        assert not (tmp_path / "prog.asm").exists()
        assert not (tmp_path / "prog.o").exists()

    @posix_only
    def test_keep_intermediates(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHPILLER_NASM", str(fake_tool(tmp_path, "fake-nasm", COPY_TO_OUTPUT)))
        monkeypatch.setenv("SHPILLER_LD", str(fake_tool(tmp_path, "fake-ld", COPY_TO_OUTPUT)))

        source = write_source(tmp_path, "exit(3);")
        out = tmp_path / "bin" / "app"
        out.parent.mkdir()
        result = CliRunner().invoke(hybuild.main, [str(source), "-o", str(out), "-k"])

        assert result.exit_code == 0, result.output
        assert (out.parent / "app.asm").exists()
        assert (out.parent / "app.o").exists()
        assert out.exists()

    @posix_only
    def test_assembler_failure(self, tmp_path, monkeypatch):
        nasm = fake_tool(tmp_path, "fake-nasm", 'echo "prog.asm:3: error: bad things" >&2; exit 1')
        monkeypatch.setenv("SHPILLER_NASM", str(nasm))

        source = write_source(tmp_path, "exit(3);")
        result = CliRunner().invoke(hybuild.main, [str(source)])

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "exited with status 1" in result.output
        assert "bad things" in result.output

    def test_missing_tool(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHPILLER_NASM", "definitely-not-a-real-assembler")
        source = write_source(tmp_path, "exit(3);")
        result = CliRunner().invoke(hybuild.main, [str(source)])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "command not found" in result.output

    def test_compile_error_stops_pipeline(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHPILLER_NASM", "definitely-not-a-real-assembler")
        source = write_source(tmp_path, "let x = 1; let x = 2;")
        result = CliRunner().invoke(hybuild.main, [str(source)])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "redeclaration of 'x'" in result.output
        assert "command not found" not in result.output

    def test_asm_only_refuses_to_overwrite_input(self, tmp_path):
        source = write_source(tmp_path, "exit(3);", name="prog.asm")
        result = CliRunner().invoke(hybuild.main, [str(source), "-S"])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "would overwrite the input file" in result.output
        assert source.read_text(encoding="utf-8") == "exit(3);"

    def test_keep_refuses_to_overwrite_input(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHPILLER_NASM", "definitely-not-a-real-assembler")
        source = write_source(tmp_path, "exit(3);", name="prog.asm")
        result = CliRunner().invoke(hybuild.main, [str(source), "-k"])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert source.read_text(encoding="utf-8") == "exit(3);"

    def test_output_named_as_input(self, tmp_path):
        source = write_source(tmp_path, "exit(3);")
        result = CliRunner().invoke(hybuild.main, [str(source), "-o", str(source)])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert source.read_text(encoding="utf-8") == "exit(3);"
