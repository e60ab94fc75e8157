"""
hyc - Hydrogen Compiler Command-Line Interface
==============================================

This module implements the command-line interface for the Hydrogen
compiler. It turns one `.hy` source file into NASM x86-64 assembly.

Usage Examples
--------------
Basic compilation:
    $ hyc prog.hy

With output file:
    $ hyc prog.hy -o prog.asm

Inspect the front end:
    $ hyc --tokens prog.hy
    $ hyc --ast prog.hy

Full pipeline by hand:
    $ hyc prog.hy && nasm -felf64 prog.asm && ld prog.o -o prog

Verbose mode:
    $ hyc -v prog.hy
"""

from pathlib import Path
from typing import Optional

import click

from shpiller import __version__
from shpiller.compiler import (
    HydrogenCompiler,
    CompilerOptions,
    ASTPrinter,
    HyLexer,
    parse_source,
)
from shpiller.cli.errors import configure_logging, handle_cli_exception


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
    help="Output assembly file (default: input.asm)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token stream and exit (for debugging)",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--no-comments",
    is_flag=True,
    help="Omit statement comments from the generated assembly",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Show compiler debug logging on stderr",
)
@click.version_option(version=__version__, prog_name="hyc")
def main(
    input_file: Path,
    output: Optional[Path],
    tokens: bool,
    ast: bool,
    no_comments: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """
    Compile Hydrogen source code to x86-64 assembly.

    INPUT_FILE is the Hydrogen source file (.hy) to compile.

    The compiler produces NASM assembly for Linux that can be assembled
    with `nasm -felf64` and linked with `ld`. Use hybuild to run the
    whole pipeline in one step.

    \b
    Examples:
        hyc prog.hy                  # Outputs prog.asm
        hyc prog.hy -o out.asm       # Specify output file
        hyc --ast prog.hy            # Dump the syntax tree
        hyc -v prog.hy               # Verbose output
    """
    configure_logging(debug)

    if output is None:
        output = input_file.with_suffix(".asm")

    options = CompilerOptions(output_comments=not no_comments)

    try:
        if verbose:
            click.echo(f"Compiling {input_file}...")

        source = input_file.read_text(encoding="utf-8")
        filename = str(input_file)

        # Token dump mode: lexer only, so files that do not parse still dump
        if tokens:
            for token in HyLexer(source, filename).tokenize():
                click.echo(repr(token))
            return

        # AST dump mode: stops before code generation
        if ast:
            printer = ASTPrinter()
            click.echo(printer.print(parse_source(source, filename)))
            return

        if output.resolve() == input_file.resolve():
            raise click.UsageError(f"output {output} would overwrite the input file")

        compiler = HydrogenCompiler(options)
        result = compiler.compile_source(source, filename)

        output.write_text(result.assembly, encoding="utf-8")

        if verbose:
            click.echo(f"Wrote {len(result.assembly)} bytes to {output}")
            click.echo(f"Tokenized: {result.token_count} tokens")
            click.echo(f"Parsed: {len(result.ast.statements)} top-level statements")

        click.echo(f"Compiled {input_file} -> {output}")

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
