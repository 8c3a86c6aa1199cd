"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdderive.cli.commands import fields_cmd, headings_cmd, plugins_cmd


app = typer.Typer(name="mdderive", no_args_is_help=True, help="Derived Markdown fields: html, excerpt, headings, time to read")

app.command(name="fields")(fields_cmd)
app.command(name="headings")(headings_cmd)
app.command(name="plugins")(plugins_cmd)
