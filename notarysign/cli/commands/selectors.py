import click

from .._ctx import CLIContext
from .._root import cli_root
from ..runtime import notarysign_exception_manager

__all__ = ['selectors_group', 'update']


@cli_root.group(
    help='manage the list of cantons and domains', name='selectors'
)
def selectors_group():
    pass


@selectors_group.command(help='download a newer selector list', name='update')
@click.pass_context
def update(ctx: click.Context):
    ctx_obj: CLIContext = ctx.obj
    with notarysign_exception_manager():
        settings = ctx_obj.require_config().get_selector_list()
        updater = settings.updater(session=ctx_obj.get_session())
        selector_list = updater.update()
    click.echo(
        f"Selector list version {selector_list.version}: "
        f"{len(selector_list.cantons)} cantons, "
        f"{len(selector_list.domains)} domains"
    )
