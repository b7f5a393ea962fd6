"""CLI entrypoint: Typer app definition and command registration"""

import logging

import typer

from infopub.cli.commands import (
    check_cmd, create_cmd, delete_cmd, export_cmd, init_cmd, list_cmd,
    plan_cmd, publish_cmd, templates_cmd, unpublish_cmd, url_cmd,
)


app = typer.Typer(name="infopub", no_args_is_help=True, help="Block-based information page publishing")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log lifecycle and audit events"),
    ):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app.command(name="init")(init_cmd)
app.command(name="templates")(templates_cmd)
app.command(name="create")(create_cmd)
app.command(name="list")(list_cmd)
app.command(name="check")(check_cmd)
app.command(name="publish")(publish_cmd)
app.command(name="unpublish")(unpublish_cmd)
app.command(name="export")(export_cmd)
app.command(name="delete")(delete_cmd)
app.command(name="url")(url_cmd)
app.command(name="plan")(plan_cmd)
