"""Root command group for the entra CLI."""

import logging
import sys

import click

from . import __version__
from .commands import approleassignment

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _configure_logging(verbose: bool, debug: bool):
    """Send logs to stderr so stdout stays clean for --json output."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)
    # urllib3 is chatty at DEBUG and would echo request URLs twice
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))


@click.group()
@click.version_option(__version__, prog_name="entra")
@click.option("-V", "--verbose", is_flag=True, help="Log progress to stderr")
@click.option("--debug", is_flag=True, help="Log requests and dropped records to stderr")
def main(verbose: bool, debug: bool):
    """Read-only tools for Microsoft Entra ID.

    \b
    Authentication (environment):
      ENTRA_ACCESS_TOKEN                        pre-acquired Graph token
      ENTRA_TENANT_ID + ENTRA_CLIENT_ID
        + ENTRA_CLIENT_SECRET                   app-only sign-in
      ENTRA_CLIENT_ID [+ ENTRA_TENANT_ID]       device code sign-in
    """
    _configure_logging(verbose, debug)


main.add_command(approleassignment.approleassignment_group)


if __name__ == "__main__":
    main()
