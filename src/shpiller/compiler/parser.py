"""
Hydrogen Parser
===============

This module implements a recursive descent parser for Hydrogen. It
converts the token stream produced by the lexer into an Abstract Syntax
Tree (AST) and checks identifier usage against the active scopes.

Grammar (EBNF-style)
--------------------
program    ::= statement* EOF
statement  ::= 'exit' '(' expr ')' ';'
             | 'let' IDENTIFIER '=' expr ';'
             | 'if' '(' expr ')' scope ('else' scope)?
             | scope
scope      ::= '{' statement* '}'
expr       ::= term (('+' | '-') term)*
term       ::= factor (('*' | '/') factor)*
factor     ::= INT_LITERAL | IDENTIFIER | '(' expr ')'

Operator Precedence (highest to lowest)
---------------------------------------
1. Parentheses: ( )
2. Multiplicative: * /
3. Additive: + -

Operators of equal precedence associate to the left, so
`10 - 3 - 2` parses as `(10 - 3) - 2`.

Scope Checking
--------------
The parser keeps a stack of frames, one per open scope, mapping each
bound name to the location of its `let`. A second `let` of a name in
the innermost frame is a redeclaration; shadowing an outer frame is
fine. A use of a name that no frame binds is undeclared.

Nesting Limit
-------------
Parentheses and braces are parsed by recursion, so together they may
nest at most MAX_NESTING_DEPTH levels. Deeper input is rejected with
NestingTooDeepError rather than running out of interpreter stack.

The first error stops the parse; there is no recovery.
"""

import logging
from typing import Callable, Optional

from shpiller.errors import SourceLocation
from shpiller.compiler.lexer import HyLexer, HyToken, HyTokenType
from shpiller.compiler.ast import (
    BinaryExpression,
    BinaryOperator,
    ExitStatement,
    Expression,
    IdentifierExpression,
    IfStatement,
    IntLiteral,
    LetStatement,
    ParenthesizedExpression,
    ScopeStatement,
    Statement,
)
from shpiller.compiler.errors import (
    NestingTooDeepError,
    RedeclaredIdentifierError,
    UndeclaredIdentifierError,
    UnexpectedTokenError,
)

logger = logging.getLogger(__name__)

# Open '(' and '{' allowed at once; each '(' costs five parser frames
MAX_NESTING_DEPTH = 100


class HyParser:
    """
    Recursive descent parser for Hydrogen.

    Attributes:
        tokens: List of tokens to parse (must end with EOF)
        filename: Source filename for error reporting
        source_lines: Original source lines for caret diagnostics
    """

    def __init__(
        self,
        tokens: list[HyToken],
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
    ):
        self.tokens = tokens
        self.filename = filename
        self.source_lines = source_lines or []

        # Current position in token stream
        self._pos = 0

        # One frame per open scope: name -> location of its 'let'
        self._frames: list[dict[str, SourceLocation]] = []

        # Open parentheses and braces
        self._nesting = 0

    def parse(self) -> ScopeStatement:
        """
        Parse the token stream into an AST.

        Returns:
            The root ScopeStatement holding the top-level statements

        Raises:
            UnexpectedTokenError: On a grammar violation
            UndeclaredIdentifierError: On use of an unbound name
            RedeclaredIdentifierError: On a second 'let' in one scope
            NestingTooDeepError: If '(' and '{' nest too deeply
        """
        self._pos = 0
        self._frames = [{}]
        self._nesting = 0

        statements = []
        while not self._at_end():
            statements.append(self._parse_statement())

        self._frames.pop()

        logger.debug(f"Parsed {len(statements)} top-level statements from {self.filename}")
        return ScopeStatement(
            location=SourceLocation(self.filename, 1, 1),
            statements=tuple(statements),
        )

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._peek().type == HyTokenType.EOF

    def _peek(self, offset: int = 0) -> HyToken:
        """Look at token at current position + offset."""
        pos = self._pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _advance(self) -> HyToken:
        """Consume and return the current token."""
        if not self._at_end():
            token = self.tokens[self._pos]
            self._pos += 1
            return token
        return self.tokens[-1]

    def _check(self, *types: HyTokenType) -> bool:
        return self._peek().type in types

    def _match(self, *types: HyTokenType) -> Optional[HyToken]:
        """Consume current token if it matches one of the types."""
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: HyTokenType, expected: str) -> HyToken:
        """
        Expect and consume a specific token type.

        Args:
            token_type: The required token type
            expected: Description of it for the error message

        Raises:
            UnexpectedTokenError: If the current token is something else
        """
        if self._check(token_type):
            return self._advance()
        self._unexpected(expected)

    def _unexpected(self, expected: str) -> None:
        current = self._peek()
        raise UnexpectedTokenError(
            current.describe(),
            expected,
            current.location,
            self._get_source_line(current.line),
        )

    def _get_source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _enter_nesting(self, open_token: HyToken) -> None:
        self._nesting += 1
        if self._nesting > MAX_NESTING_DEPTH:
            raise NestingTooDeepError(
                MAX_NESTING_DEPTH,
                open_token.location,
                self._get_source_line(open_token.line),
            )

    def _leave_nesting(self) -> None:
        self._nesting -= 1

    # =========================================================================
    # Scope Frames
    # =========================================================================

    def _declare(self, name_token: HyToken) -> None:
        """Bind a name in the innermost frame."""
        name = name_token.value
        frame = self._frames[-1]

        if name in frame:
            raise RedeclaredIdentifierError(
                name,
                name_token.location,
                frame[name],
                self._get_source_line(name_token.line),
            )

        frame[name] = name_token.location

    def _resolve(self, name_token: HyToken) -> None:
        """Check that a name is bound in some active frame."""
        name = name_token.value
        for frame in reversed(self._frames):
            if name in frame:
                return

        raise UndeclaredIdentifierError(
            name,
            name_token.location,
            self._get_source_line(name_token.line),
            self._find_similar_identifiers(name),
        )

    def _find_similar_identifiers(self, name: str) -> list[str]:
        """
        Find visible identifiers with similar names for error hints.

        Uses simple edit distance heuristic.
        """
        name_lower = name.lower()
        similar = []

        for frame in reversed(self._frames):
            for candidate in frame:
                if candidate in similar:
                    continue
                candidate_lower = candidate.lower()
                # Check for simple typos: off by one char, case difference
                if (
                    candidate_lower == name_lower or
                    abs(len(candidate) - len(name)) <= 1 and
                    _edit_distance(name_lower, candidate_lower) <= 2
                ):
                    similar.append(candidate)

        return similar[:3]

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        token = self._peek()

        if token.type == HyTokenType.EXIT:
            return self._parse_exit_statement()
        if token.type == HyTokenType.LET:
            return self._parse_let_statement()
        if token.type == HyTokenType.IF:
            return self._parse_if_statement()
        if token.type == HyTokenType.LBRACE:
            return self._parse_scope()

        self._unexpected("statement")

    def _parse_exit_statement(self) -> ExitStatement:
        """Parse: exit ( expr ) ;"""
        exit_token = self._advance()
        self._expect(HyTokenType.LPAREN, "'('")
        expression = self._parse_expression()
        self._expect(HyTokenType.RPAREN, "')'")
        self._expect(HyTokenType.SEMICOLON, "';'")

        return ExitStatement(location=exit_token.location, expression=expression)

    def _parse_let_statement(self) -> LetStatement:
        """
        Parse: let name = expr ;

        The initializer is resolved before the name is bound, so the new
        name is not visible inside its own initializer.
        """
        let_token = self._advance()
        name_token = self._expect(HyTokenType.IDENTIFIER, "identifier")
        self._expect(HyTokenType.ASSIGN, "'='")
        expression = self._parse_expression()
        self._expect(HyTokenType.SEMICOLON, "';'")

        self._declare(name_token)

        return LetStatement(
            location=let_token.location,
            name=name_token.value,
            expression=expression,
        )

    def _parse_if_statement(self) -> IfStatement:
        """Parse: if ( expr ) scope [else scope]"""
        if_token = self._advance()
        self._expect(HyTokenType.LPAREN, "'('")
        condition = self._parse_expression()
        self._expect(HyTokenType.RPAREN, "')'")

        then_scope = self._parse_scope()

        else_scope = None
        if self._match(HyTokenType.ELSE):
            else_scope = self._parse_scope()

        return IfStatement(
            location=if_token.location,
            condition=condition,
            then_scope=then_scope,
            else_scope=else_scope,
        )

    def _parse_scope(self) -> ScopeStatement:
        """Parse: { statement* }"""
        open_token = self._expect(HyTokenType.LBRACE, "'{'")
        self._enter_nesting(open_token)

        self._frames.append({})
        statements = []
        while not self._check(HyTokenType.RBRACE):
            if self._at_end():
                self._unexpected("'}'")
            statements.append(self._parse_statement())
        self._advance()
        self._frames.pop()
        self._leave_nesting()

        return ScopeStatement(
            location=open_token.location,
            statements=tuple(statements),
        )

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse additive expression (+ -)."""
        return self._parse_binary(
            self._parse_term,
            {
                HyTokenType.PLUS: BinaryOperator.ADD,
                HyTokenType.MINUS: BinaryOperator.SUBTRACT,
            },
        )

    def _parse_term(self) -> Expression:
        """Parse multiplicative expression (* /)."""
        return self._parse_binary(
            self._parse_factor,
            {
                HyTokenType.STAR: BinaryOperator.MULTIPLY,
                HyTokenType.SLASH: BinaryOperator.DIVIDE,
            },
        )

    def _parse_binary(
        self,
        operand_parser: Callable[[], Expression],
        operators: dict[HyTokenType, BinaryOperator],
    ) -> Expression:
        """
        Generic left-associative binary expression parser.

        Args:
            operand_parser: Function to parse operands
            operators: Map of token types to binary operators
        """
        expr = operand_parser()

        while self._peek().type in operators:
            op_token = self._advance()
            right = operand_parser()
            expr = BinaryExpression(
                location=expr.location,
                operator=operators[op_token.type],
                left=expr,
                right=right,
            )

        return expr

    def _parse_factor(self) -> Expression:
        """Parse integer literal, identifier, or parenthesized expression."""
        token = self._peek()

        if token.type == HyTokenType.INT_LITERAL:
            self._advance()
            return IntLiteral(location=token.location, value=token.value)

        if token.type == HyTokenType.IDENTIFIER:
            self._advance()
            self._resolve(token)
            return IdentifierExpression(location=token.location, name=token.value)

        if token.type == HyTokenType.LPAREN:
            self._advance()
            self._enter_nesting(token)
            inner = self._parse_expression()
            self._expect(HyTokenType.RPAREN, "')'")
            self._leave_nesting()
            return ParenthesizedExpression(location=token.location, expression=inner)

        self._unexpected("expression")


# =============================================================================
# Helpers
# =============================================================================

def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(
                    distances[j],
                    distances[j + 1],
                    new_distances[-1],
                ))
        distances = new_distances

    return distances[-1]


def parse_source(source: str, filename: str = "<input>") -> ScopeStatement:
    """
    Parse Hydrogen source code into an AST.

    This is a convenience function that combines lexing and parsing.

    Args:
        source: The Hydrogen source code
        filename: Source filename for error messages

    Returns:
        The root ScopeStatement of the AST

    Raises:
        CompileError: If lexing or parsing fails
    """
    lexer = HyLexer(source, filename)
    tokens = list(lexer.tokenize())
    source_lines = source.splitlines()
    parser = HyParser(tokens, filename, source_lines)
    return parser.parse()
