import click

from ..selector_list import SelectorList
from ..selectors import JurisdictionSelector

__all__ = ['readable_file', 'credential_options', 'choose_selector']

readable_file = click.Path(exists=True, readable=True, dir_okay=False)


def credential_options(f):
    f = click.option(
        '--client-key',
        help='TLS client key (PEM) [default: from configuration]',
        required=False,
        type=readable_file,
    )(f)
    f = click.option(
        '--client-cert',
        help='TLS client certificate (PEM) [default: from configuration]',
        required=False,
        type=readable_file,
    )(f)
    f = click.option(
        '--cert',
        help='signer certificate (PEM/DER) [default: from configuration]',
        required=False,
        type=readable_file,
    )(f)
    return f


def _prompt_code(what: str, entries, default: str) -> str:
    if entries:
        click.echo(f"Available {what}s:")
        for code, entry in sorted(entries.items()):
            click.echo(f"  {code:<8} {entry.label()}")
        choice_type = click.Choice(sorted(entries), case_sensitive=False)
    else:
        choice_type = click.STRING
    return click.prompt(
        what.capitalize(), default=default or None, type=choice_type
    )


def choose_selector(selector_list: SelectorList):
    """
    Build a selector chooser that prompts on the terminal, offering the
    entries of a selector list.
    """

    def _choose(configured):
        canton = configured.canton if configured is not None else ''
        domain = configured.domain if configured is not None else ''
        return JurisdictionSelector(
            canton=_prompt_code('canton', selector_list.cantons, canton),
            domain=_prompt_code('domain', selector_list.domains, domain),
        )

    return _choose
