"""
CLI utilities for command line reconstruction and introspection.
"""

from pathlib import Path

import click

COMMAND_NAME = "sql_schema_to_code"


def format_value(value) -> str:
    """Shorten existing paths to their file name for cleaner display."""
    if isinstance(value, (str, Path)):
        path_obj = Path(str(value))
        return path_obj.name if path_obj.exists() else str(value)
    return str(value)


def reconstruct_command_line(click_command: click.Command) -> str:
    """
    Reconstruct command line from current Click context using introspection.

    Args:
        click_command: Click command object for introspection

    Returns:
        Reconstructed command line string
    """
    # Try to get current Click context for parameter values
    try:
        ctx = click.get_current_context()
        cli_args = ctx.params
    except RuntimeError:
        # No active context, return basic command
        return COMMAND_NAME

    if not cli_args:
        return COMMAND_NAME

    arguments = []  # For positional arguments
    options = []  # For optional arguments

    for param in click_command.params:
        param_name = param.name
        if param_name not in cli_args:
            continue

        value = cli_args[param_name]

        if isinstance(param, click.Argument):
            if value:
                arguments.append(format_value(value))
            continue

        if not isinstance(param, click.Option) or value == param.default:
            continue

        if param.is_flag:
            # Boolean switches: --force, or --no-format for a false --format/--no-format
            if value:
                options.append(param.opts[0])
            elif param.secondary_opts:
                options.append(param.secondary_opts[0])
            continue

        if value is None or value == "":
            continue

        flag = param.opts[0] if param.opts else f"--{param_name}"
        options.extend([flag, format_value(value)])

    return " ".join([COMMAND_NAME, *arguments, *options])
