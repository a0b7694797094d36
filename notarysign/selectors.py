import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import SelectorResolutionFailure

__all__ = ['JurisdictionSelector', 'SelectorChooser', 'resolve_selector']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JurisdictionSelector:
    """
    A (canton, domain) pair identifying the jurisdiction a notarial
    confirmation is issued for.

    Equality and hashing are case-insensitive in both components; the
    original spelling is retained for display and for the wire protocol.
    """

    canton: str
    """
    Short canton code, e.g. ``VD``.
    """

    domain: str
    """
    Short register domain code, e.g. ``upreg``.
    """

    @property
    def key(self):
        return self.canton.casefold(), self.domain.casefold()

    @property
    def is_complete(self) -> bool:
        return bool(self.canton and self.domain)

    def matches(self, canton: str, domain: str) -> bool:
        return self.key == (canton.casefold(), domain.casefold())

    def __eq__(self, other):
        if not isinstance(other, JurisdictionSelector):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def __str__(self):
        return f"{self.canton}/{self.domain}"


SelectorChooser = Callable[
    [Optional[JurisdictionSelector]], Optional[JurisdictionSelector]
]
"""
Caller-supplied function that lets the user pick a selector.
It receives the currently configured selector (if any) and returns
``None`` if the user cancels.
"""


def resolve_selector(
    configured: Optional[JurisdictionSelector],
    chooser: Optional[SelectorChooser] = None,
    always_ask: bool = False,
) -> JurisdictionSelector:
    """
    Determine the jurisdiction selector for a signing session.

    :param configured:
        The selector taken from configuration, possibly incomplete.
    :param chooser:
        Function to query the user with.
    :param always_ask:
        Query the user even if the configured selector is complete.
    :return:
        A complete :class:`JurisdictionSelector`.
    :raises SelectorResolutionFailure:
        if no complete selector could be obtained.
    """
    complete = configured is not None and configured.is_complete
    if complete and not always_ask:
        return configured
    if chooser is None:
        raise SelectorResolutionFailure(
            "Jurisdiction selector is incomplete and there is no way to "
            "ask the user."
        )
    chosen = chooser(configured)
    if chosen is None or not chosen.is_complete:
        logger.info("Jurisdiction selection cancelled by user")
        raise SelectorResolutionFailure("No jurisdiction selected.")
    return chosen
