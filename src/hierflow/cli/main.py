"""
hierflow CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import logging

import click

from .commands import hit, layout, options, table


@click.group()
@click.version_option(package_name="hierflow")
@click.option("-v", "--verbose", is_flag=True, help="Log pipeline details to stderr")
def main(verbose: bool):
    """hierflow: Interactive hierarchy layout engine.

    Filters, collapses and lays out parent/child rows as a tidy tree
    or an indented table.

    \b
    Quick Start:
      hierflow table rows.json
      hierflow layout rows.json --search sales --json
      hierflow hit rows.json 400 300
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register commands
main.add_command(table.table)
main.add_command(layout.layout)
main.add_command(options.options)
main.add_command(hit.hit)

if __name__ == "__main__":
    main()
