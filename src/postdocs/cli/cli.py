"""CLI entrypoint: Typer app definition and command registration"""

import typer

from postdocs.cli.commands import (
    build_cmd, check_cmd, diff_cmd, export_cmd, history_cmd, ingest_cmd, init_cmd, list_cmd,
)


app = typer.Typer(name="postdocs", no_args_is_help=True, help="Blog document set checker and store")

app.command(name="init")(init_cmd)
app.command(name="check")(check_cmd)
app.command(name="ingest")(ingest_cmd)
app.command(name="export")(export_cmd)
app.command(name="build")(build_cmd)
app.command(name="list")(list_cmd)
app.command(name="history")(history_cmd)
app.command(name="diff")(diff_cmd)
