"""
Hydrogen Compiler
=================

This package implements a compiler for Hydrogen, a tiny language of
integer variables, arithmetic, nested scopes, `if`/`else` and `exit`,
targeting x86-64 Linux.

- A lexer (tokenizer) for Hydrogen source
- A recursive descent parser producing an AST and checking scopes
- A stack-machine code generator emitting NASM assembly

Pipeline
--------
    Hydrogen Source → Lexer → Parser → AST → Code Generator → Assembly

The generated assembly is assembled with `nasm -felf64` and linked with
`ld`; the `hybuild` command does both.

Usage
-----
>>> from shpiller.compiler import compile_hy
>>> asm_output = compile_hy('''
... let x = 7;
... if (x - 7) {
...     exit(1);
... } else {
...     exit(x * 6);
... }
... ''')

Memory Model
------------
- One numeric type: 64-bit signed integers
- Every variable is an 8-byte stack slot, addressed relative to RSP
- Scopes release their slots when they end
"""

from shpiller.compiler.compiler import (
    HydrogenCompiler,
    CompilerOptions,
    CompilerResult,
    compile_hy,
    compile_file,
)
from shpiller.compiler.errors import (
    CompileError,
    LexError,
    ParseError,
    UnexpectedTokenError,
    NestingTooDeepError,
    UndeclaredOrRedeclaredError,
    UndeclaredIdentifierError,
    RedeclaredIdentifierError,
)
from shpiller.compiler.lexer import HyLexer, HyTokenType, HyToken
from shpiller.compiler.parser import HyParser, parse_source, MAX_NESTING_DEPTH
from shpiller.compiler.codegen import CodeGenerator, Symbol
from shpiller.compiler.ast import (
    ASTNode,
    ASTVisitor,
    ASTPrinter,
    BinaryOperator,
    ScopeStatement,
    ExitStatement,
    LetStatement,
    IfStatement,
    IntLiteral,
    IdentifierExpression,
    BinaryExpression,
    ParenthesizedExpression,
)

__all__ = [
    # Main API
    "HydrogenCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_hy",
    "compile_file",
    # Errors
    "CompileError",
    "LexError",
    "ParseError",
    "UnexpectedTokenError",
    "NestingTooDeepError",
    "UndeclaredOrRedeclaredError",
    "UndeclaredIdentifierError",
    "RedeclaredIdentifierError",
    # Lexer
    "HyLexer",
    "HyTokenType",
    "HyToken",
    # Parser
    "HyParser",
    "parse_source",
    "MAX_NESTING_DEPTH",
    # Code Generator
    "CodeGenerator",
    "Symbol",
    # AST Nodes
    "ASTNode",
    "ASTVisitor",
    "ASTPrinter",
    "BinaryOperator",
    "ScopeStatement",
    "ExitStatement",
    "LetStatement",
    "IfStatement",
    "IntLiteral",
    "IdentifierExpression",
    "BinaryExpression",
    "ParenthesizedExpression",
]
