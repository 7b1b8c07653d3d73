"""scad-flatten CLI - merge OpenSCAD include/use trees into single files."""

import click

from .commands.flatten import flatten_cmd
from .commands.inspect import inspect_cmd
from .logging_setup import init_logging


@click.group(invoke_without_command=True)
@click.version_option(package_name="scad-flatten")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Append structured JSONL logs here")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_file: str | None):
    """scad-flatten - flatten OpenSCAD projects into self-contained files."""
    init_logging(verbose=verbose, log_file=log_file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


cli.add_command(flatten_cmd)
cli.add_command(inspect_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
