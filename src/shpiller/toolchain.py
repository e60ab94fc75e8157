"""
External Toolchain (nasm + ld)
==============================

Thin wrappers around the external assembler and linker that turn the
compiler's NASM output into a Linux executable:

    prog.asm --nasm -felf64--> prog.o --ld--> prog

Configuration
-------------
Tool names come from ToolchainConfig, which can be overridden through
environment variables:

    SHPILLER_NASM        assembler executable (default: nasm)
    SHPILLER_LD          linker executable (default: ld)
    SHPILLER_ASM_FORMAT  nasm output format (default: elf64)

Failures surface as ToolchainError, carrying the tool's exit status and
its captured stderr.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from shpiller.errors import ToolchainError

logger = logging.getLogger(__name__)


@dataclass
class ToolchainConfig:
    """
    Names and options for the external build tools.

    Attributes:
        assembler: Assembler executable
        assembler_format: Value passed to the assembler's -f option
        linker: Linker executable
    """
    assembler: str = "nasm"
    assembler_format: str = "elf64"
    linker: str = "ld"

    @classmethod
    def from_env(cls) -> "ToolchainConfig":
        """
        Create ToolchainConfig from environment variables.

        Environment variables (all optional):
            SHPILLER_NASM: Assembler executable
            SHPILLER_LD: Linker executable
            SHPILLER_ASM_FORMAT: Assembler output format

        Returns:
            ToolchainConfig with values from environment variables
        """
        config = cls()

        if assembler := os.environ.get("SHPILLER_NASM"):
            config.assembler = assembler

        if linker := os.environ.get("SHPILLER_LD"):
            config.linker = linker

        if asm_format := os.environ.get("SHPILLER_ASM_FORMAT"):
            config.assembler_format = asm_format

        return config


def run_tool(command: list[str]) -> subprocess.CompletedProcess:
    """
    Run an external tool, raising ToolchainError if it fails.

    Args:
        command: Program followed by its arguments

    Returns:
        The completed process (stdout/stderr captured as text)

    Raises:
        ToolchainError: If the program is missing or exits non-zero
    """
    tool = command[0]
    logger.debug(f"Running: {' '.join(command)}")

    try:
        completed = subprocess.run(command, capture_output=True, text=True)
    except FileNotFoundError:
        raise ToolchainError(tool, "command not found (is it installed and on PATH?)")

    if completed.returncode != 0:
        raise ToolchainError(
            tool,
            f"exited with status {completed.returncode}",
            returncode=completed.returncode,
            stderr=completed.stderr,
        )

    return completed


def assemble(source_asm: Path, output_obj: Path, config: ToolchainConfig) -> None:
    """Assemble a NASM source file into an object file."""
    run_tool([
        config.assembler,
        f"-f{config.assembler_format}",
        str(source_asm),
        "-o",
        str(output_obj),
    ])


def link(object_file: Path, output_exe: Path, config: ToolchainConfig) -> None:
    """Link an object file into an executable."""
    run_tool([config.linker, str(object_file), "-o", str(output_exe)])
