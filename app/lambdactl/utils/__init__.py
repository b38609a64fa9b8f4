"""Utility modules for lambdactl.

This module exports commonly used utility functions.
"""

from lambdactl.utils.formatting import (
    console,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from lambdactl.utils.shell import CommandResult, CommandRunner, command_exists, run_command

__all__ = [
    "CommandResult",
    "CommandRunner",
    "command_exists",
    "console",
    "err_console",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]
