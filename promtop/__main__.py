from promtop.cli import cli

cli()
