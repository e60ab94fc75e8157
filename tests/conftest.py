"""
Shpiller Test Configuration
===========================

pytest configuration and fixtures shared by all tests under tests/.

It provides:
- An interpreter for the x86-64 subset the code generator emits, so
  generated programs can be executed without nasm or ld
- Fixtures wrapping it: `run_asm` (assembly text) and `run_hy`
  (Hydrogen source)

The interpreter understands exactly the instructions the generator uses:
mov, push, pop, add, sub, imul, cqo, idiv, test, jz, jmp and the exit
syscall, with operands that are registers, immediates, labels, or
QWORD [rsp + N] memory references. Anything else is a test failure.
"""

import re
from dataclasses import dataclass, field

import pytest

from shpiller.compiler import compile_hy


MASK64 = (1 << 64) - 1
INITIAL_RSP = 0x7FFF_FFF0
MAX_STEPS = 100_000

MEMORY_OPERAND = re.compile(r"QWORD\s*\[\s*rsp\s*\+\s*(\d+)\s*\]", re.IGNORECASE)
REGISTERS = ("rax", "rbx", "rdx", "rdi", "rsp")


class MachineFault(Exception):
    """The program did something the real CPU would fault on (or we can't run)."""


def to_signed(value: int) -> int:
    value &= MASK64
    return value - (1 << 64) if value & (1 << 63) else value


@dataclass
class ExecutionResult:
    """
    Outcome of running a program.

    Attributes:
        status: Exit status as the parent process sees it (0-255)
        rdi: Full 64-bit signed value passed to exit
        stack_bytes: Bytes still pushed when exit was called
        steps: Instructions executed
    """
    status: int
    rdi: int
    stack_bytes: int
    steps: int


@dataclass
class X86Subset:
    """Executes NASM text produced by the code generator."""
    source: str
    entry: str = "_start"
    registers: dict = field(default_factory=dict)
    memory: dict = field(default_factory=dict)
    zero_flag: bool = False

    def __post_init__(self):
        self.instructions: list[tuple[str, list[str]]] = []
        self.labels: dict[str, int] = {}
        self._load()

    def _load(self) -> None:
        for raw in self.source.splitlines():
            line = raw.split(";", 1)[0].strip()
            if not line:
                continue
            if line.endswith(":"):
                label = line[:-1]
                if label in self.labels:
                    raise MachineFault(f"duplicate label {label}")
                self.labels[label] = len(self.instructions)
                continue
            parts = line.split(None, 1)
            mnemonic = parts[0].lower()
            if mnemonic in ("global", "section"):
                continue
            operands = [op.strip() for op in parts[1].split(",")] if len(parts) > 1 else []
            self.instructions.append((mnemonic, operands))

    # -------------------------------------------------------------------------
    # Operand access
    # -------------------------------------------------------------------------

    def _read(self, operand: str) -> int:
        if operand in REGISTERS:
            return self.registers[operand]
        match = MEMORY_OPERAND.fullmatch(operand)
        if match:
            address = self.registers["rsp"] + int(match.group(1))
            if address not in self.memory:
                raise MachineFault(f"read of uninitialised stack slot {operand}")
            return self.memory[address]
        return to_signed(int(operand))

    def _write(self, register: str, value: int) -> None:
        if register not in REGISTERS:
            raise MachineFault(f"cannot write to {register}")
        self.registers[register] = to_signed(value)

    def _push(self, value: int) -> None:
        self.registers["rsp"] -= 8
        self.memory[self.registers["rsp"]] = to_signed(value)

    def _pop(self) -> int:
        rsp = self.registers["rsp"]
        if rsp >= INITIAL_RSP:
            raise MachineFault("pop from empty stack")
        self.registers["rsp"] = rsp + 8
        return self.memory.pop(rsp)

    def _jump(self, label: str) -> int:
        if label not in self.labels:
            raise MachineFault(f"jump to undefined label {label}")
        return self.labels[label]

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def run(self) -> ExecutionResult:
        self.registers = {name: 0 for name in REGISTERS}
        self.registers["rsp"] = INITIAL_RSP
        self.memory = {}
        pc = self._jump(self.entry)

        for steps in range(1, MAX_STEPS + 1):
            if pc >= len(self.instructions):
                raise MachineFault("ran off the end of the program")
            mnemonic, ops = self.instructions[pc]
            pc += 1

            if mnemonic == "mov":
                self._write(ops[0], self._read(ops[1]))
            elif mnemonic == "push":
                self._push(self._read(ops[0]))
            elif mnemonic == "pop":
                self._write(ops[0], self._pop())
            elif mnemonic == "add":
                self._write(ops[0], self._read(ops[0]) + self._read(ops[1]))
            elif mnemonic == "sub":
                self._write(ops[0], self._read(ops[0]) - self._read(ops[1]))
            elif mnemonic == "imul":
                self._write(ops[0], self._read(ops[0]) * self._read(ops[1]))
            elif mnemonic == "cqo":
                self._write("rdx", -1 if self.registers["rax"] < 0 else 0)
            elif mnemonic == "idiv":
                self._idiv(self._read(ops[0]))
            elif mnemonic == "test":
                self.zero_flag = (self._read(ops[0]) & self._read(ops[1]) & MASK64) == 0
            elif mnemonic == "jz":
                if self.zero_flag:
                    pc = self._jump(ops[0])
            elif mnemonic == "jmp":
                pc = self._jump(ops[0])
            elif mnemonic == "syscall":
                if self.registers["rax"] != 60:
                    raise MachineFault(f"unsupported syscall {self.registers['rax']}")
                rdi = self.registers["rdi"]
                return ExecutionResult(
                    status=rdi & 0xFF,
                    rdi=rdi,
                    stack_bytes=INITIAL_RSP - self.registers["rsp"],
                    steps=steps,
                )
            else:
                raise MachineFault(f"unsupported instruction {mnemonic}")

        raise MachineFault("step limit exceeded")

    def _idiv(self, divisor: int) -> None:
        """Signed RDX:RAX / divisor, truncating toward zero like the CPU."""
        if divisor == 0:
            raise MachineFault("divide error (#DE)")
        dividend = ((self.registers["rdx"] & MASK64) << 64) | (self.registers["rax"] & MASK64)
        if dividend >= 1 << 127:
            dividend -= 1 << 128
        quotient = abs(dividend) // abs(divisor)
        if (dividend < 0) != (divisor < 0):
            quotient = -quotient
        if not -(1 << 63) <= quotient < (1 << 63):
            raise MachineFault("divide error (#DE): quotient overflow")
        remainder = dividend - quotient * divisor
        self._write("rax", quotient)
        self._write("rdx", remainder)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def run_asm():
    """
    Fixture: execute generated assembly.

    Returns a function taking NASM text and returning an ExecutionResult.
    """
    def _run(asm: str, entry: str = "_start") -> ExecutionResult:
        return X86Subset(asm, entry=entry).run()
    return _run


@pytest.fixture
def run_hy(run_asm):
    """
    Fixture: compile Hydrogen source and return the process exit status.
    """
    def _run(source: str) -> int:
        return run_asm(compile_hy(source)).status
    return _run
