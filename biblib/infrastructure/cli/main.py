import typer

from .commands import (
    bibliography as bibliography_cmd,
    citekey as citekey_cmd,
    note as note_cmd,
    render as render_cmd,
    zotero as zotero_cmd,
)

app = typer.Typer(help="biblib: citekeys, templates and literature notes for Markdown vaults")

app.add_typer(citekey_cmd.app, name="citekey")
app.add_typer(note_cmd.app, name="note")
app.add_typer(zotero_cmd.app, name="zotero")
app.add_typer(bibliography_cmd.app, name="bibliography")
app.command("render")(render_cmd.render)


if __name__ == "__main__":
    app()
