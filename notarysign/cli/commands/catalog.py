import click

from ...catalog import CatalogCache, EndpointCatalog
from .._ctx import CLIContext
from .._root import cli_root
from ..runtime import notarysign_exception_manager

__all__ = ['catalog_group', 'refresh', 'show']


def _print_catalog(endpoint_catalog: EndpointCatalog):
    click.echo(f"Release: {endpoint_catalog.release.isoformat()}")
    for entry in endpoint_catalog.entries:
        click.echo(f"{entry.selector}\t{entry.version}\t{entry.url}")


@cli_root.group(help='manage the sealing endpoint catalog', name='catalog')
def catalog_group():
    pass


@catalog_group.command(
    help='download the catalog if a newer one is published', name='refresh'
)
@click.pass_context
def refresh(ctx: click.Context):
    ctx_obj: CLIContext = ctx.obj
    with notarysign_exception_manager():
        settings = ctx_obj.require_config().get_catalog()
        fetcher = settings.fetcher(session=ctx_obj.get_session())
        endpoint_catalog = fetcher.ensure_fresh()
    _print_catalog(endpoint_catalog)


@catalog_group.command(help='show the cached catalog', name='show')
@click.pass_context
def show(ctx: click.Context):
    ctx_obj: CLIContext = ctx.obj
    with notarysign_exception_manager():
        settings = ctx_obj.require_config().get_catalog()
        endpoint_catalog = CatalogCache(settings.cache_path).load()
    _print_catalog(endpoint_catalog)
