"""
Hydrogen Compiler Main Module
=============================

This module provides the main compiler interface for Hydrogen.
It orchestrates the complete compilation process:

    Source → Lex → Parse → Generate → Assembly

Usage
-----
Command line:
    $ hyc prog.hy -o prog.asm

Programmatic:
    >>> from shpiller.compiler import compile_hy
    >>> asm = compile_hy('exit(42);')

The compiler produces NASM x86-64 assembly for Linux. Turning it into
an executable is left to `nasm -felf64` and `ld` (see `hybuild`).

Compilation Pipeline
--------------------
1. **Lexical Analysis**: Convert source to tokens
2. **Parsing**: Build the AST, checking identifier scopes on the way
3. **Code Generation**: Convert the AST to assembly

Error Handling
--------------
Compilation stops at the first error, which propagates to the caller
as a CompileError subclass carrying its source location.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from shpiller.compiler.lexer import HyLexer, HyToken
from shpiller.compiler.parser import HyParser
from shpiller.compiler.codegen import CodeGenerator
from shpiller.compiler.ast import ScopeStatement

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        output_comments: Emit a `;` comment before each statement's code
        entry_label: Global label the linker uses as the entry point
    """
    output_comments: bool = True
    entry_label: str = "_start"


class HydrogenCompiler:
    """
    Hydrogen compiler for x86-64 Linux.

    Example:
        compiler = HydrogenCompiler()
        result = compiler.compile_file("prog.hy")
        print(result.assembly)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> "CompilerResult":
        """
        Compile Hydrogen source code to assembly.

        Args:
            source: Hydrogen source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult containing the assembly and intermediate stages

        Raises:
            CompileError: If lexing or parsing fails
            InternalCompilerError: If code generation hits a compiler bug
        """
        result = CompilerResult(filename=filename)

        # Stage 1: Lexical analysis
        tokens = self._lex(source, filename)
        result.tokens = tokens
        result.token_count = len(tokens)
        logger.debug(f"{filename}: {len(tokens)} tokens")

        # Stage 2: Parsing
        ast = self._parse(tokens, filename, source.splitlines())
        result.ast = ast
        logger.debug(f"{filename}: {len(ast.statements)} top-level statements")

        # Stage 3: Code generation
        result.assembly = self._generate(ast)
        result.success = True

        return result

    def compile_file(self, filepath: str) -> "CompilerResult":
        """
        Compile a Hydrogen source file to assembly.

        Args:
            filepath: Path to the .hy source file

        Returns:
            CompilerResult containing the assembly and intermediate stages

        Raises:
            CompileError: If compilation fails
            FileNotFoundError: If source file not found
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding='utf-8')
        return self.compile_source(source, str(filepath))

    def _lex(self, source: str, filename: str) -> list[HyToken]:
        lexer = HyLexer(source, filename)
        return list(lexer.tokenize())

    def _parse(self, tokens: list[HyToken], filename: str, source_lines: list[str]) -> ScopeStatement:
        parser = HyParser(tokens, filename, source_lines)
        return parser.parse()

    def _generate(self, ast: ScopeStatement) -> str:
        generator = CodeGenerator(
            output_comments=self.options.output_comments,
            entry_label=self.options.entry_label,
        )
        return generator.generate(ast)


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        assembly: Generated assembly code
        ast: Root of the abstract syntax tree
        tokens: Tokens produced by the lexer, ending with EOF
        token_count: Number of tokens lexed
    """
    filename: str = ""
    success: bool = False
    assembly: str = ""
    ast: Optional[ScopeStatement] = None
    tokens: list[HyToken] = field(default_factory=list)
    token_count: int = 0


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_hy(
    source: str,
    filename: str = "<input>",
    output_comments: bool = True,
) -> str:
    """
    Compile Hydrogen source code to NASM assembly.

    This is the primary high-level interface for compiling Hydrogen.

    Args:
        source: Hydrogen source code
        filename: Source filename for error messages
        output_comments: Emit statement comments in the assembly

    Returns:
        Generated assembly code

    Raises:
        CompileError: If compilation fails

    Example:
        >>> asm = compile_hy('let x = 6; exit(x * 7);')
    """
    options = CompilerOptions(output_comments=output_comments)
    compiler = HydrogenCompiler(options)
    return compiler.compile_source(source, filename).assembly


def compile_file(
    filepath: str,
    output_path: Optional[str] = None,
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile a Hydrogen source file to NASM assembly.

    Args:
        filepath: Path to .hy source file
        output_path: Optional path to write assembly output
        options: Compiler configuration (uses defaults if None)

    Returns:
        Generated assembly code

    Raises:
        CompileError: If compilation fails
        FileNotFoundError: If source file not found

    Example:
        >>> asm = compile_file("prog.hy", "prog.asm")
    """
    compiler = HydrogenCompiler(options)
    result = compiler.compile_file(filepath)

    if output_path:
        Path(output_path).write_text(result.assembly, encoding='utf-8')

    return result.assembly
