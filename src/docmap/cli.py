"""Root CLI group for docmap with global flags and commands."""

from __future__ import annotations

import click

from docmap import __version__
from docmap.config.logging import configure_logging
from docmap.config.settings import DocmapSettings
from docmap.output.formatters import format_result
from docmap.services.mapping import MappingService
from docmap.services.result import ServiceResult


class AppContext:
    """Shared context flowing to subcommands via ``@click.pass_obj``.

    The service is built lazily so ``--help`` and ``--version`` never
    load entity modules.
    """

    def __init__(self, settings: DocmapSettings) -> None:
        self.settings = settings
        self._service: MappingService | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def service(self) -> MappingService:
        if self._service is None:
            self._service = MappingService(self.settings)
        return self._service

    def emit(self, result: ServiceResult) -> None:
        """Write *result* to stdout on success; stderr and exit 1 on failure."""
        output = format_result(result, json_output=self.settings.json_output)
        if result.ok:
            click.echo(output)
            if not self.settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="docmap")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """docmap — document URI and collection mapping tools."""
    settings = DocmapSettings.load(
        config_path=config_path,
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("template")
@click.option(
    "--entity-class",
    "entity_class",
    default=None,
    help="Class in scope as entityClass (module:Class).",
)
@click.option("--id", "identifier", default=None, help="Value in scope as id.")
@click.pass_obj
def resolve(app: AppContext, template: str, entity_class: str | None, identifier: str | None) -> None:
    """Resolve a URI or collection TEMPLATE.

    \b
    Examples:
      docmap resolve '/docs/#{id}.xml' --id 42
      docmap resolve '#{entityClass.simpleName}' --entity-class myapp.models:User
    """
    app.emit(app.service.resolve_template(template, entity_class=entity_class, identifier=identifier))


@cli.command()
@click.argument("class_path")
@click.pass_obj
def describe(app: AppContext, class_path: str) -> None:
    """Show how CLASS_PATH (module:Class) maps to the document store."""
    app.emit(app.service.describe_entity(class_path))
