"""
Hydrogen Lexer (Tokenizer)
==========================

This module converts Hydrogen source text into a stream of tokens for
the parser.

Token Categories
----------------
- Keywords: exit, let, if, else
- Identifiers: letters, digits and underscore, not starting with a digit
- Integer literals: runs of decimal digits
- Operators: + - * / =
- Delimiters: ( ) { } ;

Comments
--------
- Single-line: // comment
- Multi-line: /* comment */

Example Usage
-------------
>>> from shpiller.compiler.lexer import HyLexer
>>> for token in HyLexer("exit(42);", "test.hy").tokenize():
...     print(token)
Token(EXIT, 'exit', 1:1)
Token(LPAREN, '(', 1:5)
Token(INT_LITERAL, 42, 1:6)
Token(RPAREN, ')', 1:8)
Token(SEMICOLON, ';', 1:9)
Token(EOF, 1:10)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from shpiller.errors import SourceLocation
from shpiller.compiler.errors import LexError


# =============================================================================
# Token Type Enumeration
# =============================================================================

class HyTokenType(Enum):
    """Token types for the Hydrogen language."""

    # === Structural Tokens ===
    EOF = auto()            # End of input

    # === Identifiers and Literals ===
    IDENTIFIER = auto()     # Variable names
    INT_LITERAL = auto()    # Decimal integer literals

    # === Keywords ===
    EXIT = auto()           # exit
    LET = auto()            # let
    IF = auto()             # if
    ELSE = auto()           # else

    # === Arithmetic Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /

    # === Assignment ===
    ASSIGN = auto()         # =

    # === Delimiters ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    LBRACE = auto()         # {
    RBRACE = auto()         # }
    SEMICOLON = auto()      # ;


# =============================================================================
# Keyword and Punctuation Tables
# =============================================================================

KEYWORDS: dict[str, HyTokenType] = {
    "exit": HyTokenType.EXIT,
    "let": HyTokenType.LET,
    "if": HyTokenType.IF,
    "else": HyTokenType.ELSE,
}

SINGLE_CHAR_TOKENS: dict[str, HyTokenType] = {
    "+": HyTokenType.PLUS,
    "-": HyTokenType.MINUS,
    "*": HyTokenType.STAR,
    "/": HyTokenType.SLASH,
    "=": HyTokenType.ASSIGN,
    "(": HyTokenType.LPAREN,
    ")": HyTokenType.RPAREN,
    "{": HyTokenType.LBRACE,
    "}": HyTokenType.RBRACE,
    ";": HyTokenType.SEMICOLON,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class HyToken:
    """
    A single token from Hydrogen source.

    Attributes:
        type: The HyTokenType classification
        value: int for literals, the source text for everything else,
               None for EOF
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: HyTokenType
    value: str | int | None
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        """Format token for debugging output."""
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, {self.value}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def describe(self) -> str:
        """Human-readable description used in parse errors."""
        if self.type == HyTokenType.EOF:
            return "end of input"
        if self.type == HyTokenType.INT_LITERAL:
            return f"integer literal {self.value}"
        if self.type == HyTokenType.IDENTIFIER:
            return f"identifier '{self.value}'"
        return f"'{self.value}'"


# =============================================================================
# Lexer Implementation
# =============================================================================

class HyLexer:
    """
    Tokenizes Hydrogen source code.

    Scanning is a single pass with one character of lookahead. Identifiers
    and keywords are read as one maximal alphanumeric run and then checked
    against the keyword table, so `exits` is an identifier and `exit` is a
    keyword.

    Usage:
        lexer = HyLexer(source_text, filename)
        tokens = list(lexer.tokenize())
    """

    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"
    WHITESPACE = " \t\r\n"

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        line_number: int = 1,
    ):
        """
        Initialize the lexer with source code.

        Args:
            source: The Hydrogen source code to tokenize
            filename: Name of the source file (for error messages)
            line_number: Starting line number
        """
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = line_number
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[HyToken]:
        """
        Generate tokens from the source code.

        Yields:
            HyToken objects in source order, always ending with EOF

        Raises:
            LexError: If a character cannot be scanned
        """
        while not self._at_end():
            self._skip_whitespace_and_comments()

            if self._at_end():
                break

            yield self._scan_token()

        yield self._make_token(HyTokenType.EOF, None)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """
        Look at character at current position + offset without advancing.

        Returns empty string if past end of source.
        """
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: HyTokenType,
        value: str | int | None,
        start_line: Optional[int] = None,
        start_column: Optional[int] = None,
    ) -> HyToken:
        return HyToken(
            type=token_type,
            value=value,
            line=start_line or self._line,
            column=start_column or self._column,
            filename=self.filename,
        )

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace_and_comments(self) -> None:
        while not self._at_end():
            char = self._peek()

            if char in self.WHITESPACE:
                self._advance()
                continue

            if char == "/" and self._peek(1) == "/":
                self._skip_single_line_comment()
                continue

            if char == "/" and self._peek(1) == "*":
                self._skip_multi_line_comment()
                continue

            break

    def _skip_single_line_comment(self) -> None:
        self._advance()
        self._advance()
        while not self._at_end() and self._peek() != "\n":
            self._advance()

    def _skip_multi_line_comment(self) -> None:
        """
        Skip a multi-line comment (/* ... */).

        Raises:
            LexError: If the comment is not terminated
        """
        start_line = self._line
        start_col = self._column
        source_line = self._get_current_line()

        self._advance()
        self._advance()

        while not self._at_end():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                return
            self._advance()

        raise LexError(
            "/",
            SourceLocation(self.filename, start_line, start_col),
            source_line,
            message="unterminated multi-line comment",
            hint="add closing */ to terminate the comment",
        )

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> HyToken:
        start_line = self._line
        start_column = self._column

        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_column)

        if char in string.digits:
            return self._scan_integer(start_line, start_column)

        if char in SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(SINGLE_CHAR_TOKENS[char], char, start_line, start_column)

        raise LexError(
            char,
            SourceLocation(self.filename, start_line, start_column),
            self._get_current_line(),
        )

    def _scan_identifier(self, start_line: int, start_column: int) -> HyToken:
        """Scan a maximal identifier run, then classify it as keyword or name."""
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)

        if name in KEYWORDS:
            return self._make_token(KEYWORDS[name], name, start_line, start_column)

        return self._make_token(HyTokenType.IDENTIFIER, name, start_line, start_column)

    def _scan_integer(self, start_line: int, start_column: int) -> HyToken:
        """
        Scan a maximal run of decimal digits.

        The value is not range-checked; `123abc` lexes as 123 followed by
        the identifier `abc`.
        """
        chars = []
        while self._peek() and self._peek() in string.digits:
            chars.append(self._advance())

        value = int("".join(chars))
        return self._make_token(HyTokenType.INT_LITERAL, value, start_line, start_column)

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _get_current_line(self) -> str:
        """Get the current line of source text for error reporting."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]

    def peek_token(self) -> HyToken:
        """
        Peek at the next token without consuming it.

        Saves the scanning state, scans one token, then restores it.
        """
        saved_pos = self._pos
        saved_line = self._line
        saved_column = self._column
        saved_line_start = self._line_start_pos

        try:
            self._skip_whitespace_and_comments()

            if self._at_end():
                return self._make_token(HyTokenType.EOF, None)

            return self._scan_token()
        finally:
            self._pos = saved_pos
            self._line = saved_line
            self._column = saved_column
            self._line_start_pos = saved_line_start
