"""
Hydrogen Abstract Syntax Tree (AST) Definitions
===============================================

This module defines the AST node types produced by the parser and
consumed by the code generator.

Node Hierarchy
--------------
ASTNode (base)
├── Statements
│   ├── ScopeStatement - block { ... }; the program root is one too
│   ├── ExitStatement - exit(expr);
│   ├── LetStatement - let name = expr;
│   └── IfStatement - if (expr) { ... } else { ... }
└── Expressions
    ├── IntLiteral - integer constant
    ├── IdentifierExpression - variable reference
    ├── BinaryExpression - + - * /
    └── ParenthesizedExpression - ( expr )

Design Notes
------------
- All nodes are frozen dataclasses; child sequences are tuples, so the
  tree cannot change once the parser hands it over
- Every node owns its children exclusively (no sharing, no cycles)
- Each node stores its source location for diagnostics
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from shpiller.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node appears
    """
    location: SourceLocation


@dataclass(frozen=True)
class Expression(ASTNode):
    """Base class for nodes that evaluate to a value."""
    pass


@dataclass(frozen=True)
class Statement(ASTNode):
    """Base class for nodes that perform an action."""
    pass


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class ScopeStatement(Statement):
    """
    A lexical block enclosed in braces.

    Opens a new symbol frame: names bound by `let` inside it are dropped,
    and their stack slots released, when the block ends. The parser
    returns the whole program as a root ScopeStatement.

    Attributes:
        statements: Statements in source order
    """
    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class ExitStatement(Statement):
    """
    exit(expr); terminates the process with expr as its status.

    Attributes:
        expression: The exit status expression
    """
    expression: Expression = None


@dataclass(frozen=True)
class LetStatement(Statement):
    """
    let name = expr; binds a new variable in the current scope.

    Attributes:
        name: The variable name
        expression: The initial value
    """
    name: str = ""
    expression: Expression = None


@dataclass(frozen=True)
class IfStatement(Statement):
    """
    If statement with optional else scope.

    Attributes:
        condition: Non-zero selects the then branch
        then_scope: Scope executed if condition is non-zero
        else_scope: Optional scope executed otherwise
    """
    condition: Expression = None
    then_scope: ScopeStatement = None
    else_scope: Optional[ScopeStatement] = None


# =============================================================================
# Expression Nodes
# =============================================================================

class BinaryOperator(Enum):
    """Binary operator types; values are the source spelling."""
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


@dataclass(frozen=True)
class IntLiteral(Expression):
    """Integer constant."""
    value: int = 0


@dataclass(frozen=True)
class IdentifierExpression(Expression):
    """Reference to a variable bound by `let`."""
    name: str = ""


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Binary operation expression (left op right).

    Attributes:
        operator: The BinaryOperator
        left: Left operand
        right: Right operand
    """
    operator: BinaryOperator = BinaryOperator.ADD
    left: Expression = None
    right: Expression = None


@dataclass(frozen=True)
class ParenthesizedExpression(Expression):
    """Explicit grouping; evaluates to its inner expression."""
    expression: Expression = None


# =============================================================================
# Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_* methods for the node types they care about.

    Usage:
        class LetCounter(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_LetStatement(self, node):
                self.count += 1
                self.generic_visit(node)

        counter = LetCounter()
        counter.visit(root)
    """

    def visit(self, node: ASTNode) -> Any:
        """Visit a node by dispatching to visit_<ClassName>."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit all children of the node."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)
            elif isinstance(field_value, tuple):
                for item in field_value:
                    if isinstance(item, ASTNode):
                        self.visit(item)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging (used by `hyc --ast`).

    Usage:
        printer = ASTPrinter()
        print(printer.print(root))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return as string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _indent(self) -> None:
        self.indent_level += 1

    def _dedent(self) -> None:
        self.indent_level = max(0, self.indent_level - 1)

    def visit_ScopeStatement(self, node: ScopeStatement):
        self._emit("Scope")
        self._indent()
        for stmt in node.statements:
            self.visit(stmt)
        self._dedent()

    def visit_ExitStatement(self, node: ExitStatement):
        self._emit(f"Exit {self._expr_str(node.expression)}")

    def visit_LetStatement(self, node: LetStatement):
        self._emit(f"Let {node.name} = {self._expr_str(node.expression)}")

    def visit_IfStatement(self, node: IfStatement):
        self._emit(f"If {self._expr_str(node.condition)}")
        self._indent()
        self._emit("Then:")
        self._indent()
        self.visit(node.then_scope)
        self._dedent()
        if node.else_scope is not None:
            self._emit("Else:")
            self._indent()
            self.visit(node.else_scope)
            self._dedent()
        self._dedent()

    def _expr_str(self, expr: Expression) -> str:
        """Convert expression to a fully bracketed string."""
        if isinstance(expr, IntLiteral):
            return str(expr.value)
        if isinstance(expr, IdentifierExpression):
            return expr.name
        if isinstance(expr, BinaryExpression):
            # Left-associative chains nest on the left; unwind them with a loop
            chain = []
            node = expr
            while isinstance(node, BinaryExpression):
                chain.append(node)
                node = node.left
            text = self._expr_str(node)
            for binary in reversed(chain):
                text = f"({text} {binary.operator.value} {self._expr_str(binary.right)})"
            return text
        if isinstance(expr, ParenthesizedExpression):
            return self._expr_str(expr.expression)
        return f"<{type(expr).__name__}>"
