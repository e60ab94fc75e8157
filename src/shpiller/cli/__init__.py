"""
Shpiller Command-Line Interface
===============================

This package provides the command-line tools for shpiller:

- **hyc**: Hydrogen compiler (source to NASM assembly)
- **hybuild**: Build pipeline (source to Linux executable), also
  installed as **shpiller**

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["hyc", "hybuild"]
