import logging

import click

from ...document import Document
from ...errors import NotActivated
from ...fileio import FileWriter
from ...notary import NotarialConfirmationDriver, activate
from ...seal import SealPluginResolver
from ...selector_list import SelectorList
from ...selectors import JurisdictionSelector, resolve_selector
from ...validation import ValidationOutcome, preflight_checks
from .._ctx import CLIContext
from .._root import cli_root
from ..runtime import notarysign_exception_manager
from ..utils import choose_selector, credential_options, readable_file

__all__ = ['confirm', 'activate_cmd']

logger = logging.getLogger(__name__)


def _question_handler(assume_yes: bool):
    def _ask(outcome: ValidationOutcome) -> bool:
        if assume_yes:
            logger.info(f"Proceeding despite {outcome.message_key} (--yes)")
            return True
        return click.confirm(
            f"{outcome.message_key}: proceed anyway?", default=False
        )

    return _ask


@cli_root.command(
    help='obtain a notarial confirmation for a signed PDF', name='confirm'
)
@click.argument('infile', type=readable_file)
@click.argument('outfile', type=click.Path(writable=True, dir_okay=False))
@click.option(
    '--canton',
    help='canton to request the confirmation for',
    required=False,
)
@click.option(
    '--domain',
    help='register domain to request the confirmation for',
    required=False,
)
@credential_options
@click.option(
    '--yes',
    help='proceed without asking when a document check raises a question',
    required=False,
    default=False,
    type=bool,
    is_flag=True,
)
@click.pass_context
def confirm(
    ctx: click.Context,
    infile,
    outfile,
    canton,
    domain,
    cert,
    client_cert,
    client_key,
    yes,
):
    ctx_obj: CLIContext = ctx.obj
    with notarysign_exception_manager():
        cfg = ctx_obj.require_config()
        service = cfg.get_notary_service()
        session = ctx_obj.get_session()

        configured = JurisdictionSelector(
            canton=canton or service.canton or '',
            domain=domain or service.domain or '',
        )
        selector_list_path = cfg.get_selector_list().path

        def _choose(current):
            selector_list = SelectorList.load(selector_list_path)
            return choose_selector(selector_list)(current)

        selector = resolve_selector(
            configured,
            chooser=_choose,
            always_ask=service.show_dialog and not (canton and domain),
        )

        credential = service.load_credential(cert, client_cert, client_key)
        validator = cfg.get_signature_validator().validator(session=session)
        checks = preflight_checks(
            service.url, validator, session=session, verify=service.verify
        )
        catalog_provider = None
        seal_kwargs = {'session': session}
        if cfg.catalog is not None:
            catalog_provider = cfg.catalog.fetcher(session=session).ensure_fresh
            seal_kwargs['verify'] = cfg.catalog.verify
        driver = NotarialConfirmationDriver(
            service.client(credential, session=session),
            checks,
            FileWriter(outfile),
            catalog_provider=catalog_provider,
            resolver=SealPluginResolver(plugin_kwargs=seal_kwargs),
            preparer=cfg.appearance.preparer(),
        )
        with open(infile, 'rb') as inf:
            document = Document.from_bytes(inf.read())
        driver.sign(document, selector, _question_handler(yes))


@cli_root.command(
    help='check whether the notarial function is activated', name='activate'
)
@credential_options
@click.pass_context
def activate_cmd(ctx: click.Context, cert, client_cert, client_key):
    ctx_obj: CLIContext = ctx.obj
    with notarysign_exception_manager():
        service = ctx_obj.require_config().get_notary_service()
        credential = service.load_credential(cert, client_cert, client_key)
        client = service.client(credential, session=ctx_obj.get_session())
        if not activate(client):
            raise NotActivated(
                f"Notarial function is not activated for "
                f"certificate {credential.fingerprint}"
            )
    click.echo("Notarial function is activated.")
