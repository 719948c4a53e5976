"""
asm24 Command-Line Interface
============================

This package provides the `asm24` command, a Click-based front end that
assembles any number of source files given by base name.
"""

__all__ = ["asm24"]
