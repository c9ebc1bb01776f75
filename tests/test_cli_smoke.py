from typer.testing import CliRunner

from sitepub.cli.cli import app


def test_cli_smoke():
    """--help lists every command and exits cleanly."""
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("build", "serve", "revert", "version"):
        assert name in result.output
