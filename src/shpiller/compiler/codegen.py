"""
x86-64 Code Generator for Hydrogen
==================================

This module generates NASM x86-64 assembly from the Hydrogen AST. The
output is meant for `nasm -felf64` followed by `ld`, and produces a
static Linux executable with a `_start` entry point.

Code Generation Strategy
------------------------
The generator is a plain stack machine:

1. Every expression leaves exactly one 8-byte value pushed on the stack
2. Binary operators pop the right operand into RBX and the left into RAX,
   operate, and push RAX
3. A `let` does not move anything: the value its initializer pushed
   simply stays where it is and becomes the variable's slot
4. Leaving a scope releases the slots of everything bound inside it with
   a single `add rsp, N`

Register Usage
--------------
| Register | Usage                                   |
|----------|-----------------------------------------|
| RAX      | Left operand / result, syscall number   |
| RBX      | Right operand                           |
| RDX      | Sign extension for IDIV (via CQO)       |
| RDI      | Exit status for the exit syscall        |
| RSP      | Stack pointer, base of variable access  |

Stack Model
-----------
The generator tracks `stack_depth`, the number of bytes it has pushed
since `_start`. A variable bound when the depth was D lives at byte
offset D - 8, so it is addressed as:

    [rsp + (stack_depth - 8 - offset)]

Since the model moves in lock step with every push and pop, the address
stays correct however deep the expression stack grows.

Process Exit
------------
`exit(expr)` becomes the Linux `exit` syscall (60) with the value in RDI.
Only the low 8 bits of the status reach the parent process. A program
that falls off the end exits with status 0.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from shpiller.errors import InternalCompilerError
from shpiller.compiler.ast import (
    ASTNode,
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

logger = logging.getLogger(__name__)

# Linux x86-64 syscall number for exit
SYS_EXIT = 60

# Size of one stack slot in bytes
SLOT_SIZE = 8


# =============================================================================
# Symbol Table Entries
# =============================================================================

@dataclass(frozen=True)
class Symbol:
    """
    A variable bound by `let`.

    Attributes:
        name: Variable name
        stack_offset: Byte offset of the slot from the bottom of the stack area
        scope_depth: Nesting depth of the binding scope (0 = program root)
    """
    name: str
    stack_offset: int
    scope_depth: int


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates NASM x86-64 assembly from a Hydrogen AST.

    A generator instance may be reused; every call to generate() starts
    from an empty symbol table, a zero stack depth and a fresh label
    counter.

    Usage:
        generator = CodeGenerator()
        asm = generator.generate(root)
    """

    def __init__(self, output_comments: bool = True, entry_label: str = "_start"):
        """
        Initialize the code generator.

        Args:
            output_comments: Emit `;` comments describing each statement
            entry_label: Global symbol the linker uses as the entry point
        """
        self._output_comments = output_comments
        self._entry_label = entry_label

        # Assembly output lines
        self._output: list[str] = []

        # Symbol frames, one per open scope
        self._frames: list[dict[str, Symbol]] = []

        # Bytes pushed since the entry point
        self._stack_depth: int = 0

        # Label generation
        self._label_counter: int = 0

    @property
    def stack_depth(self) -> int:
        """Current modelled stack depth in bytes."""
        return self._stack_depth

    def generate(self, root: ScopeStatement) -> str:
        """
        Generate assembly code from AST.

        Args:
            root: The root ScopeStatement returned by the parser

        Returns:
            Complete NASM source text

        Raises:
            InternalCompilerError: If the AST breaks an invariant the
                parser guarantees, or the stack model ends unbalanced
        """
        self._output = []
        self._frames = []
        self._stack_depth = 0
        self._label_counter = 0

        self._emit_header()
        self._generate_statement(root)
        self._emit_footer()

        if self._stack_depth != 0:
            raise InternalCompilerError(
                f"stack model unbalanced at end of program: {self._stack_depth} bytes"
            )
        if self._frames:
            raise InternalCompilerError(
                f"{len(self._frames)} scope frame(s) left open at end of program"
            )

        logger.debug(
            f"Generated {len(self._output)} lines, {self._label_counter} labels"
        )
        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Output Helpers
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        """Emit a line of assembly."""
        self._output.append(line)

    def _emit_comment(self, comment: str) -> None:
        if self._output_comments:
            self._emit(f"        ; {comment}")

    def _emit_label(self, label: str) -> None:
        self._emit(f"{label}:")

    def _emit_instruction(self, mnemonic: str, operand: str = "") -> None:
        """Emit an instruction with optional operand."""
        if operand:
            self._emit(f"        {mnemonic:<8}{operand}")
        else:
            self._emit(f"        {mnemonic}")

    def _new_label(self, prefix: str = "L") -> str:
        """Generate a unique label."""
        self._label_counter += 1
        label = f"_{prefix}{self._label_counter}"
        logger.debug(f"Allocated label {label}")
        return label

    # =========================================================================
    # Stack Model
    # =========================================================================

    def _push(self, operand: str) -> None:
        self._emit_instruction("push", operand)
        self._stack_depth += SLOT_SIZE

    def _pop(self, register: str) -> None:
        self._emit_instruction("pop", register)
        self._stack_depth -= SLOT_SIZE
        if self._stack_depth < 0:
            raise InternalCompilerError(f"stack model underflow popping into {register}")

    # =========================================================================
    # Header and Footer Generation
    # =========================================================================

    def _emit_header(self) -> None:
        self._emit_instruction("global", self._entry_label)
        self._emit_instruction("section", ".text")
        self._emit_label(self._entry_label)

    def _emit_footer(self) -> None:
        """Emit the implicit exit(0) reached by falling off the end."""
        self._emit_comment("implicit exit(0)")
        self._emit_instruction("mov", f"rax, {SYS_EXIT}")
        self._emit_instruction("mov", "rdi, 0")
        self._emit_instruction("syscall")

    # =========================================================================
    # Statement Generation
    # =========================================================================

    def _generate_statement(self, stmt: Statement) -> None:
        """Generate code for any statement."""
        if isinstance(stmt, ScopeStatement):
            self._generate_scope(stmt)
        elif isinstance(stmt, ExitStatement):
            self._generate_exit(stmt)
        elif isinstance(stmt, LetStatement):
            self._generate_let(stmt)
        elif isinstance(stmt, IfStatement):
            self._generate_if(stmt)
        else:
            self._unknown_node(stmt)

    def _generate_scope(self, stmt: ScopeStatement) -> None:
        """
        Generate a scope: its statements, then release its slots.

        The depth on entry is restored on exit, so a scope's net stack
        effect is always zero.
        """
        entry_depth = self._stack_depth
        self._frames.append({})

        for child in stmt.statements:
            self._generate_statement(child)

        self._frames.pop()

        released = self._stack_depth - entry_depth
        if released < 0:
            raise InternalCompilerError(
                f"scope at {stmt.location} popped {-released} bytes it did not push"
            )
        if released:
            logger.debug(f"Scope at {stmt.location} releases {released} bytes")
            self._emit_instruction("add", f"rsp, {released}")
        self._stack_depth = entry_depth

    def _generate_exit(self, stmt: ExitStatement) -> None:
        self._emit_comment("exit")
        self._generate_expression(stmt.expression)
        self._pop("rdi")
        self._emit_instruction("mov", f"rax, {SYS_EXIT}")
        self._emit_instruction("syscall")

    def _generate_let(self, stmt: LetStatement) -> None:
        """The initializer's pushed value becomes the variable's slot."""
        self._emit_comment(f"let {stmt.name}")
        self._generate_expression(stmt.expression)

        if not self._frames:
            raise InternalCompilerError(f"'let {stmt.name}' outside any scope")
        frame = self._frames[-1]
        if stmt.name in frame:
            raise InternalCompilerError(
                f"duplicate binding of '{stmt.name}' at {stmt.location}"
            )

        frame[stmt.name] = Symbol(
            name=stmt.name,
            stack_offset=self._stack_depth - SLOT_SIZE,
            scope_depth=len(self._frames) - 1,
        )

    def _generate_if(self, stmt: IfStatement) -> None:
        else_label = self._new_label("else")

        self._emit_comment("if")
        self._generate_expression(stmt.condition)
        self._pop("rax")
        self._emit_instruction("test", "rax, rax")
        self._emit_instruction("jz", else_label)

        self._generate_scope(stmt.then_scope)

        if stmt.else_scope is not None:
            end_label = self._new_label("endif")
            self._emit_instruction("jmp", end_label)
            self._emit_label(else_label)
            self._generate_scope(stmt.else_scope)
            self._emit_label(end_label)
        else:
            self._emit_label(else_label)

    # =========================================================================
    # Expression Generation
    # =========================================================================

    def _generate_expression(self, expr: Expression) -> None:
        """
        Generate code for an expression.

        The result is left pushed on the stack.
        """
        if isinstance(expr, IntLiteral):
            self._emit_instruction("mov", f"rax, {expr.value}")
            self._push("rax")
        elif isinstance(expr, IdentifierExpression):
            self._generate_identifier(expr)
        elif isinstance(expr, BinaryExpression):
            self._generate_binary(expr)
        elif isinstance(expr, ParenthesizedExpression):
            self._generate_expression(expr.expression)
        else:
            self._unknown_node(expr)

    def _generate_identifier(self, expr: IdentifierExpression) -> None:
        symbol = self._lookup(expr.name)
        if symbol is None:
            raise InternalCompilerError(
                f"unresolved identifier '{expr.name}' at {expr.location}"
            )

        distance = self._stack_depth - SLOT_SIZE - symbol.stack_offset
        self._push(f"QWORD [rsp + {distance}]")

    def _generate_binary(self, expr: BinaryExpression) -> None:
        """
        Generate a binary expression and any chain down its left side.

        `a + b + c + ...` nests through the left operands, so the chain is
        walked with a loop: the innermost left operand first, then each
        right operand and its operator outwards.
        """
        chain = []
        node = expr
        while isinstance(node, BinaryExpression):
            chain.append(node)
            node = node.left

        self._generate_expression(node)
        for binary in reversed(chain):
            self._generate_expression(binary.right)
            self._pop("rbx")
            self._pop("rax")
            self._emit_operator(binary.operator)
            self._push("rax")

    def _emit_operator(self, op: BinaryOperator) -> None:
        """Combine RAX and RBX into RAX."""
        if op == BinaryOperator.ADD:
            self._emit_instruction("add", "rax, rbx")
        elif op == BinaryOperator.SUBTRACT:
            self._emit_instruction("sub", "rax, rbx")
        elif op == BinaryOperator.MULTIPLY:
            self._emit_instruction("imul", "rax, rbx")
        elif op == BinaryOperator.DIVIDE:
            # Signed 128/64 division: RDX:RAX / RBX, quotient in RAX
            self._emit_instruction("cqo")
            self._emit_instruction("idiv", "rbx")
        else:
            raise InternalCompilerError(f"unknown binary operator {op!r}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _lookup(self, name: str) -> Optional[Symbol]:
        """Find the innermost binding of a name."""
        for frame in reversed(self._frames):
            if name in frame:
                return frame[name]
        return None

    def _unknown_node(self, node: ASTNode) -> None:
        raise InternalCompilerError(f"cannot generate code for {type(node).__name__}")
