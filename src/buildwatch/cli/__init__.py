"""
Command-line interface for the buildwatch package.

This module provides the main CLI entry point for running supervised builds.
"""

from .main import exit_code_for, main_cli

__all__ = [
    "exit_code_for",
    "main_cli",
]
