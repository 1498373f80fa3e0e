"""
Formats a Kamailio configuration file.
Prints the formatted document to stdout, or rewrites the file in place.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from .config import STRATEGIES, build_config
from .exceptions import ValidationError
from .filesystem import (
    DocumentReadError,
    get_max_file_size,
    get_max_line_length,
    load_document,
    resolve_cfg_path,
    save_document,
)
from .formatter import format_cfg
from .validator import validate_cfg

__all__ = ["cli"]

logger = logging.getLogger(__name__)


@click.command()
@click.version_option()
@click.option("--strategy", type=click.Choice(STRATEGIES), help="Formatting strategy")
@click.option(
    "--validate/--no-validate",
    default=None,
    help="Check braces and #!ifdef blocks before formatting",
)
@click.option("--validate-only", is_flag=True, help="Only check the structure, do not format")
@click.option("--check", is_flag=True, help="Exit with status 1 if the file would be reformatted")
@click.option("--diff", "show_diff", is_flag=True, help="Print a unified diff instead of the file")
@click.option("-i", "--in-place", is_flag=True, help="Rewrite the file in place")
@click.option("-v", "--verbose", is_flag=True, help="Log debug information to stderr")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def cli(
    ctx: click.Context,
    filepath: str,
    strategy: str | None = None,
    validate: bool | None = None,
    validate_only: bool = False,
    check: bool = False,
    show_diff: bool = False,
    in_place: bool = False,
    verbose: bool = False,
):
    """
    Entry point for formatting or validating a Kamailio configuration file.

    Args:
        ctx: Click context, used to set the exit status for `--check`.
        filepath: Path to the configuration file to process.
        strategy: Override for the formatting strategy.
        validate: Override for validating the structure before formatting.
        validate_only: Only validate the structure.
        check: Report whether the file is already formatted.
        show_diff: Print a unified diff of the changes.
        in_place: Rewrite the file with the formatted text.
        verbose: Enable debug logging.

    Returns:
        None.

    Raises:
        click.BadParameter: If the path or configuration is invalid.
        click.ClickException: If reading, validation, or writing fails.

    Examples:
        kamailio-cfg-formatter kamailio.cfg --check
        kamailio-cfg-formatter kamailio.cfg --strategy braces -i
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        path = resolve_cfg_path(filepath, Path.cwd().resolve())
        config = build_config(path.parent, strategy=strategy, validate=validate)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error

    try:
        document = load_document(
            path,
            max_file_size=get_max_file_size(default=config.max_file_size),
            max_line_length=get_max_line_length(default=config.max_line_length),
        )
    except (ValueError, DocumentReadError) as error:
        raise click.ClickException(str(error)) from error

    if config.validate or validate_only:
        try:
            validate_cfg(document.text)
        except ValidationError as error:
            raise click.ClickException(f"{path.name}: {error}") from error
        if validate_only:
            click.echo(f"{path.name}: OK")
            return

    result = format_cfg(document.text, config.strategy)
    logger.debug(
        "Formatted %s with %r strategy (changed: %s)", path, config.strategy, result.changed
    )

    if check:
        if result.changed:
            click.echo(f"would reformat {path.name}", err=True)
            ctx.exit(1)
    elif show_diff:
        click.echo(result.diff(path.name), nl=False)
    elif not in_place:
        click.echo(result.formatted, nl=False)
    elif result.changed:
        try:
            save_document(
                document,
                result.formatted,
                warn=lambda message: click.echo(message, err=True),
            )
        except IOError as error:
            raise click.ClickException(str(error)) from error


if __name__ == "__main__":
    cli()
