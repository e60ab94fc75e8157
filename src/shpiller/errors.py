"""
Shpiller Error Hierarchy
========================

This module defines the root of the exception hierarchy for shpiller.
All exceptions raised for bad user input inherit from ShpillerError,
allowing callers to catch every compiler or toolchain failure with a
single except clause.

Exception Hierarchy
-------------------
ShpillerError (base)
├── CompileError (see shpiller.compiler.errors)
│   ├── LexError - unscannable character
│   └── ParseError - grammar or identifier-resolution violation
└── ToolchainError - external assembler/linker failed or is missing

InternalCompilerError is not a ShpillerError: it signals a
broken compiler invariant, never a problem with the user's program.

Design Philosophy
-----------------
Each compile-time exception captures the source location (filename, line,
column) where the problem was found, so messages can point straight at
the offending text:

    prog.hy:3:10: error: undeclared identifier 'y'
        exit(y);
             ^
    hint: did you mean 'x'?
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class ShpillerError(Exception):
    """
    Base exception for all user-facing shpiller errors.

        try:
            compile_source(text)
        except ShpillerError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Toolchain Exceptions
# =============================================================================

class ToolchainError(ShpillerError):
    """
    An external build tool (assembler or linker) failed.

    Attributes:
        tool: The program that was invoked (e.g. "nasm")
        returncode: Its exit status, or None if it could not be started
        stderr: Captured diagnostic output from the tool
    """

    def __init__(
        self,
        tool: str,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr

        text = f"{tool}: {message}"
        if stderr.strip():
            text = f"{text}\n{stderr.rstrip()}"
        super().__init__(text)


# =============================================================================
# Internal Faults
# =============================================================================

class InternalCompilerError(RuntimeError):
    """
    A compiler invariant was violated.

    Raised by the code generator when it meets something the parser should
    have made impossible: an unresolved identifier, a duplicate binding in
    one frame, an unknown node type, or an unbalanced stack model. These
    are bugs in shpiller, so they abort loudly instead of producing
    silently-wrong assembly.
    """
    pass
