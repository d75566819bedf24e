import typer

from struct_autofill.cli.fill import fields, fill
from struct_autofill.cli.serve import serve_app

app = typer.Typer(
    name="struct-autofill",
    help="Fill Go composite literals with the missing fields of their struct type.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("fill")(fill)
app.command("fields")(fields)
app.add_typer(serve_app, name="serve")


def main() -> None:
    app()
