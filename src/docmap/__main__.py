from docmap.cli import cli

cli()
