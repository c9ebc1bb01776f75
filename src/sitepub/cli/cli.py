"""CLI entrypoint: Typer app definition and command registration"""

import typer

from sitepub.cli.commands import (
    build_cmd,
    check_cmd,
    commit_cmd,
    diff_cmd,
    extract_cmd,
    history_cmd,
    init_cmd,
    list_cmd,
    main_callback,
    new_cmd,
    render_cmd,
    revert_cmd,
    serve_cmd,
    terms_cmd,
    version_cmd,
)


app = typer.Typer(name="sitepub", no_args_is_help=True, help="Markdown blog publishing pipeline and static site server")

app.callback()(main_callback)
app.command(name="init")(init_cmd)
app.command(name="new")(new_cmd)
app.command(name="extract")(extract_cmd)
app.command(name="commit")(commit_cmd)
app.command(name="render")(render_cmd)
app.command(name="build")(build_cmd)
app.command(name="list")(list_cmd)
app.command(name="terms")(terms_cmd)
app.command(name="history")(history_cmd)
app.command(name="diff")(diff_cmd)
app.command(name="revert")(revert_cmd)
app.command(name="check")(check_cmd)
app.command(name="serve")(serve_cmd)
app.command(name="version")(version_cmd)
