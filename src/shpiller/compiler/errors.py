"""
Hydrogen Compiler Error Hierarchy
=================================

This module defines the exceptions raised while compiling `.hy` source.
All of them inherit from CompileError, which itself inherits from the
package-wide ShpillerError.

Exception Hierarchy
-------------------
CompileError (base for all compile-time errors)
├── LexError - character the lexer cannot scan
└── ParseError - grammar or scope violations
    ├── UnexpectedTokenError - found token does not fit the grammar
    └── UndeclaredOrRedeclaredError - identifier resolution failure
        ├── UndeclaredIdentifierError - use before declaration
        └── RedeclaredIdentifierError - 'let' twice in the same scope

Error Message Format
--------------------
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing

Example:
    prog.hy:2:5: error: redeclaration of 'x'
        let x = 2;
            ^
    hint: 'x' was first declared at prog.hy:1:5
"""

from typing import Optional, List

from shpiller.errors import ShpillerError, SourceLocation


# =============================================================================
# Base Compile Exception
# =============================================================================

class CompileError(ShpillerError):
    """
    Base exception for all compile-time errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

            prog.hy:1:6: error: invalid character '$'
                exit($);
                     ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Lexical Errors
# =============================================================================

class LexError(CompileError):
    """
    The lexer met a character it cannot scan.

    Also raised for a block comment that is never closed; in that case
    `character` is the '/' that opened it.

    Attributes:
        character: The offending character
    """

    def __init__(
        self,
        character: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        message: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.character = character
        if message is None:
            message = f"invalid character '{character}' (0x{ord(character):02X})"
        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Parse Errors
# =============================================================================

class ParseError(CompileError):
    """
    Base for errors detected while building the AST.

    Covers both grammar violations and identifier-resolution violations,
    since scope checks happen during parsing.
    """
    pass


class UnexpectedTokenError(ParseError):
    """
    The parser found a token that does not fit the grammar here.

    Raised for missing punctuation, unbalanced parentheses or braces,
    and input that ends in the middle of a statement.

    Attributes:
        found: Text of the token that was found
        expected: Description of what the grammar required
    """

    def __init__(
        self,
        found: str,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected

        message = f"unexpected {found}"
        if expected:
            message = f"expected {expected}, found {found}"

        super().__init__(
            message,
            location=location,
            source_line=source_line,
        )


class NestingTooDeepError(ParseError):
    """
    Parentheses or braces nest deeper than the parser accepts.

    Attributes:
        limit: The maximum nesting depth
    """

    def __init__(
        self,
        limit: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.limit = limit
        super().__init__(
            "nesting too deep",
            location=location,
            source_line=source_line,
            hint=f"at most {limit} levels of '(' and '{{' may be open at once",
        )


class UndeclaredOrRedeclaredError(ParseError):
    """
    An identifier could not be bound or resolved in the active scopes.

    Attributes:
        identifier: The identifier at fault
    """

    def __init__(
        self,
        identifier: str,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.identifier = identifier
        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndeclaredIdentifierError(UndeclaredOrRedeclaredError):
    """
    Reference to an identifier that no enclosing scope declares.

    The parser suggests similarly-named visible identifiers when it can,
    which catches most typos.
    """

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_identifiers: Optional[List[str]] = None,
    ):
        self.similar_identifiers = similar_identifiers or []

        hint = None
        if self.similar_identifiers:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_identifiers[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            identifier,
            f"undeclared identifier '{identifier}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class RedeclaredIdentifierError(UndeclaredOrRedeclaredError):
    """
    'let' of a name already bound in the same scope.

    Shadowing a name from an enclosing scope is allowed; only a second
    binding in the innermost scope is an error.
    """

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{identifier}' was first declared at {original_location}"

        super().__init__(
            identifier,
            f"redeclaration of '{identifier}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )
