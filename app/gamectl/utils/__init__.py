"""Utility modules for gamectl.

This module exports commonly used utility functions.
"""

from gamectl.utils.formatting import (
    console,
    create_catalog_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from gamectl.utils.shell import LaunchResult, build_launch_command, spawn_detached
from gamectl.utils.units import human_size, parse_size

__all__ = [
    "LaunchResult",
    "build_launch_command",
    "console",
    "create_catalog_table",
    "err_console",
    "human_size",
    "parse_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "spawn_detached",
]
