"""
Shpiller - A Compiler Toolchain for the Hydrogen Language
=========================================================

This package compiles Hydrogen (`.hy`) programs into x86-64 NASM
assembly and, with the help of `nasm` and `ld`, into Linux executables.

Main Components
---------------
- **compiler**: lexer, parser and code generator (hyc)
    Converts Hydrogen source files (.hy) to NASM assembly (.asm)

- **cli**: command-line drivers
    `hyc` compiles to assembly; `hybuild` (alias `shpiller`) goes all
    the way to an executable

Quick Start
-----------
    >>> from shpiller.compiler import compile_hy
    >>> asm = compile_hy("exit(42);")

Or use the command-line tools:
    $ hyc prog.hy -o prog.asm
    $ hybuild prog.hy -o prog
    $ ./prog; echo $?
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from shpiller.errors import (
    ShpillerError,
    SourceLocation,
    ToolchainError,
    InternalCompilerError,
)
from shpiller.compiler import (
    HydrogenCompiler,
    CompilerOptions,
    compile_hy,
    compile_file,
    CompileError,
    LexError,
    ParseError,
    UnexpectedTokenError,
    UndeclaredOrRedeclaredError,
    UndeclaredIdentifierError,
    RedeclaredIdentifierError,
)

__all__ = [
    "__version__",
    # Errors
    "ShpillerError",
    "SourceLocation",
    "ToolchainError",
    "InternalCompilerError",
    "CompileError",
    "LexError",
    "ParseError",
    "UnexpectedTokenError",
    "UndeclaredOrRedeclaredError",
    "UndeclaredIdentifierError",
    "RedeclaredIdentifierError",
    # Compiler
    "HydrogenCompiler",
    "CompilerOptions",
    "compile_hy",
    "compile_file",
]
