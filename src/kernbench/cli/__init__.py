"""Command-line interface for kernbench."""

from .commands import CLIContext, register_subcommands

__all__ = ["CLIContext", "register_subcommands"]
