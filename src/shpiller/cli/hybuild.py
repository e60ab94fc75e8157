"""
hybuild - Unified Build Tool for Hydrogen
=========================================

This module implements a build tool that runs the whole toolchain
(hyc → nasm → ld) in one command, producing a Linux x86-64 executable
from a Hydrogen source file. It is also installed as `shpiller`.

Pipeline Architecture
---------------------
    ┌──────────┐     ┌──────────┐     ┌──────────┐     ┌──────────┐
    │ .hy file │────▶│ .asm file│────▶│  .o file │────▶│executable│
    │ (source) │ hyc │  (temp)  │nasm │  (temp)  │ ld  │ (output) │
    └──────────┘     └──────────┘     └──────────┘     └──────────┘

Usage Examples
--------------
Build a program (output defaults to the input name without .hy):
    $ hybuild prog.hy
    $ ./prog; echo $?

Custom output name:
    $ hybuild prog.hy -o myprog

Keep intermediate files for debugging:
    $ hybuild -k prog.hy

Stop after generating assembly:
    $ hybuild -S prog.hy

Exit Codes
----------
0 - Success
1 - Build failed (compile, assemble, or link error)
2 - Invalid arguments or file not found
3 - Internal compiler error

Notes
-----
- The assembler and linker can be swapped through the SHPILLER_NASM,
  SHPILLER_LD and SHPILLER_ASM_FORMAT environment variables.
- Without -k, intermediate files live in a temporary directory that is
  removed when the build ends, even on failure.
"""

import tempfile
from pathlib import Path
from typing import Optional

import click

from shpiller import __version__
from shpiller.compiler import HydrogenCompiler, CompilerOptions
from shpiller.toolchain import ToolchainConfig, assemble, link
from shpiller.cli.errors import configure_logging, handle_cli_exception


# =============================================================================
# Helper Functions
# =============================================================================

def resolve_output_path(output: Optional[Path], source_file: Path) -> Path:
    """
    Determine the output executable path.

    If no output is specified, the executable takes the source file's
    name without its extension, in the source file's directory.

    Examples:
        prog.hy      → prog
        dir/test.hy  → dir/test
        prog         → prog.out
    """
    if output is not None:
        return output
    if not source_file.suffix:
        return source_file.with_name(f"{source_file.name}.out")
    return source_file.with_suffix("")


def check_not_input(path: Path, source_file: Path) -> None:
    """
    Refuse to write a build product over the source file.

    Raises:
        click.UsageError: If path names the same file as source_file
    """
    if path.resolve() == source_file.resolve():
        raise click.UsageError(f"{path} would overwrite the input file")


# =============================================================================
# Pipeline Stages
# =============================================================================

def compile_to_asm(
    source_file: Path,
    output_asm: Path,
    verbose: bool,
    step_label: str = "[1/3]",
) -> None:
    """
    Compile Hydrogen source to NASM assembly.

    Raises:
        CompileError: If compilation fails
    """
    if verbose:
        click.echo(f"{step_label} Compiling {source_file.name} → {output_asm.name}")

    source = source_file.read_text(encoding='utf-8')
    compiler = HydrogenCompiler(CompilerOptions(output_comments=True))
    result = compiler.compile_source(source, str(source_file))

    output_asm.write_text(result.assembly, encoding='utf-8')

    if verbose:
        click.echo(f"      Generated {len(result.assembly)} bytes of assembly")


def assemble_to_object(
    source_asm: Path,
    output_obj: Path,
    config: ToolchainConfig,
    verbose: bool,
) -> None:
    """
    Assemble NASM source to an object file.

    Raises:
        ToolchainError: If the assembler fails
    """
    if verbose:
        click.echo(f"[2/3] Assembling {source_asm.name} → {output_obj.name}")
        click.echo(f"      {config.assembler} -f{config.assembler_format}")

    assemble(source_asm, output_obj, config)


def link_executable(
    object_file: Path,
    output_exe: Path,
    config: ToolchainConfig,
    verbose: bool,
) -> None:
    """
    Link an object file into the final executable.

    Raises:
        ToolchainError: If the linker fails
    """
    if verbose:
        click.echo(f"[3/3] Linking {object_file.name} → {output_exe.name}")
        click.echo(f"      {config.linker}")

    link(object_file, output_exe, config)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output executable (default: input name without .hy)",
)
@click.option(
    "-S", "--asm-only",
    is_flag=True,
    help="Stop after writing the .asm file beside the output",
)
@click.option(
    "-k", "--keep",
    is_flag=True,
    help="Keep intermediate .asm and .o files beside the output",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show each pipeline stage",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Show compiler and toolchain debug logging on stderr",
)
@click.version_option(version=__version__, prog_name="hybuild")
def main(
    input_file: Path,
    output: Optional[Path],
    asm_only: bool,
    keep: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """
    Build a Linux x86-64 executable from Hydrogen source.

    INPUT_FILE is the Hydrogen source file (.hy) to build.

    \b
    Examples:
        hybuild prog.hy                # Outputs ./prog
        hybuild prog.hy -o myprog      # Custom output name
        hybuild -k prog.hy             # Keep prog.asm and prog.o
        hybuild -S prog.hy             # Only write prog.asm
        hybuild -v prog.hy             # Verbose output

    \b
    Requirements:
        nasm and ld must be on PATH (or named through SHPILLER_NASM
        and SHPILLER_LD).
    """
    configure_logging(debug)

    try:
        output_exe = resolve_output_path(output, input_file)
        config = ToolchainConfig.from_env()
        stem = output_exe.name
        check_not_input(output_exe, input_file)

        if verbose:
            click.echo(f"Building {input_file}")
            click.echo(f"Output: {output_exe}")
            click.echo()

        # Assembly only: write straight beside the output
        if asm_only:
            output_asm = output_exe.with_name(f"{stem}.asm")
            check_not_input(output_asm, input_file)
            compile_to_asm(input_file, output_asm, verbose, step_label="[1/1]")
            click.echo(f"Compiled {input_file} -> {output_asm}")
            return

        if keep:
            work_dir = output_exe.parent
            check_not_input(work_dir / f"{stem}.asm", input_file)
            check_not_input(work_dir / f"{stem}.o", input_file)
            _build(input_file, work_dir, stem, output_exe, config, verbose)
            if verbose:
                click.echo(f"Kept: {work_dir / f'{stem}.asm'}")
                click.echo(f"Kept: {work_dir / f'{stem}.o'}")
        else:
            with tempfile.TemporaryDirectory(prefix="hybuild_") as temp_dir:
                _build(input_file, Path(temp_dir), stem, output_exe, config, verbose)

        if verbose:
            click.echo()
        click.echo(f"Built {output_exe}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Build")


def _build(
    input_file: Path,
    work_dir: Path,
    stem: str,
    output_exe: Path,
    config: ToolchainConfig,
    verbose: bool,
) -> None:
    """Run compile, assemble and link with intermediates in work_dir."""
    work_asm = work_dir / f"{stem}.asm"
    work_obj = work_dir / f"{stem}.o"

    compile_to_asm(input_file, work_asm, verbose)
    assemble_to_object(work_asm, work_obj, config, verbose)
    link_executable(work_obj, output_exe, config, verbose)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
