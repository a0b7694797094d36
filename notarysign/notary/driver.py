"""
Driver for the notarial confirmation workflow.

A signing session moves through the following states, strictly forward::

    INIT -> PREFLIGHT_VALIDATED -> RT1_DONE -> APPEARANCE_PREPARED
         -> RT2_DONE -> [SEAL_VALIDATED -> SEALED] -> WRITTEN

The bracketed states are only visited if a seal plugin applies to the
session's jurisdiction. Any failure aborts the session and discards its
state; a new attempt starts over with a new session, including a new RT1
exchange.
"""

import enum
import hashlib
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..catalog import EndpointCatalog
from ..credentials import CredentialHandle
from ..document import Document
from ..errors import (
    CatalogUnavailable,
    SealingFailure,
    SelectorResolutionFailure,
)
from ..seal import SealPlugin, SealPluginResolver
from ..selectors import JurisdictionSelector
from ..validation import QuestionHandler, ValidationCheck, execute_checks
from .appearance import (
    DEFAULT_MD_ALGORITHM,
    PdfAppearancePreparer,
    PreparedAppearance,
)
from .client import (
    NotaryServiceClient,
    RT1Request,
    RT1Response,
    RT2Request,
    RT2Response,
)
from .codes import ClientErrorCode, remote_failure

__all__ = [
    'SessionState',
    'SessionStateError',
    'SigningSession',
    'NotarialConfirmationDriver',
    'activate',
]

logger = logging.getLogger(__name__)


@enum.unique
class SessionState(enum.Enum):
    INIT = enum.auto()
    PREFLIGHT_VALIDATED = enum.auto()
    RT1_DONE = enum.auto()
    APPEARANCE_PREPARED = enum.auto()
    RT2_DONE = enum.auto()
    SEAL_VALIDATED = enum.auto()
    SEALED = enum.auto()
    WRITTEN = enum.auto()
    ABORTED = enum.auto()


_TRANSITIONS = {
    SessionState.INIT: {SessionState.PREFLIGHT_VALIDATED},
    SessionState.PREFLIGHT_VALIDATED: {SessionState.RT1_DONE},
    SessionState.RT1_DONE: {SessionState.APPEARANCE_PREPARED},
    SessionState.APPEARANCE_PREPARED: {SessionState.RT2_DONE},
    SessionState.RT2_DONE: {
        SessionState.SEAL_VALIDATED,
        SessionState.WRITTEN,
    },
    SessionState.SEAL_VALIDATED: {SessionState.SEALED},
    SessionState.SEALED: {SessionState.WRITTEN},
}


class SessionStateError(RuntimeError):
    """
    Raised on an attempt to move a session to a state that is not reachable
    from its current state.
    """


@dataclass
class SigningSession:
    """
    State of a single signing operation.
    """

    document: Document
    selector: JurisdictionSelector
    credential: CredentialHandle
    state: SessionState = SessionState.INIT
    rt1_response: Optional[RT1Response] = None
    appearance: Optional[PreparedAppearance] = None
    rt2_response: Optional[RT2Response] = None
    output: Optional[bytes] = None
    """
    Current output document, once the confirmation has been embedded.
    """

    def advance(self, new_state: SessionState):
        allowed = _TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise SessionStateError(
                f"Cannot move signing session from {self.state.name} "
                f"to {new_state.name}"
            )
        logger.debug(f"Signing session: {self.state.name} -> {new_state.name}")
        self.state = new_state

    def discard(self):
        self.rt1_response = None
        self.appearance = None
        self.rt2_response = None
        self.output = None
        self.state = SessionState.ABORTED


CatalogProvider = Callable[[], EndpointCatalog]
DocumentWriter = Callable[[bytes], None]


class NotarialConfirmationDriver:
    """
    Obtains a notarial confirmation for a signed document, optionally adds
    a cantonal seal, and hands the result to a writer.

    :param client:
        Client for the notarial confirmation service, bound to the user's
        credentials.
    :param preflight_checks:
        Checks to run before contacting the service, in order.
    :param writer:
        Receives the final document.
    :param catalog_provider:
        Supplies the current endpoint catalog. If ``None``, no seal is
        ever applied.
    :param resolver:
        Seal plugin resolver.
    :param preparer:
        Lays out the confirmation signature.
    """

    def __init__(
        self,
        client: NotaryServiceClient,
        preflight_checks: Sequence[ValidationCheck],
        writer: DocumentWriter,
        catalog_provider: Optional[CatalogProvider] = None,
        resolver: Optional[SealPluginResolver] = None,
        preparer: Optional[PdfAppearancePreparer] = None,
    ):
        self.client = client
        self.preflight_checks = list(preflight_checks)
        self.writer = writer
        self.catalog_provider = catalog_provider
        self.resolver = resolver or SealPluginResolver()
        self.preparer = preparer or PdfAppearancePreparer()

    def sign(
        self,
        document: Document,
        selector: JurisdictionSelector,
        ask: QuestionHandler,
    ) -> bytes:
        """
        Run a complete signing session.

        :param document:
            The signed document to confirm.
        :param selector:
            The jurisdiction to request the confirmation for.
        :param ask:
            Decision function for questions raised by document checks.
        :return:
            The final document, as handed to the writer.
        :raises NotarySignError:
            if the session was aborted.
        """
        if not selector.is_complete:
            raise SelectorResolutionFailure(
                f"Incomplete jurisdiction selector {selector}"
            )
        session = SigningSession(
            document=document,
            selector=selector,
            credential=self.client.credential,
        )
        try:
            self._run(session, ask)
        except Exception:
            logger.info(
                f"Signing session aborted in state {session.state.name}"
            )
            session.discard()
            raise
        assert session.output is not None
        return session.output

    def _run(self, session: SigningSession, ask: QuestionHandler):
        execute_checks(session.document, self.preflight_checks, ask)
        session.advance(SessionState.PREFLIGHT_VALIDATED)

        session.rt1_response = self._rt1(session)
        session.advance(SessionState.RT1_DONE)

        session.appearance = self.preparer.prepare(
            session.document, session.rt1_response
        )
        session.advance(SessionState.APPEARANCE_PREPARED)

        appearance = session.appearance
        session.rt2_response = self.client.call_rt2(
            RT2Request(
                uuid=session.rt1_response.uuid,
                document_digest=appearance.document_digest,
                md_algorithm=appearance.md_algorithm,
            )
        )
        session.output = self.preparer.close(appearance, session.rt2_response)
        session.advance(SessionState.RT2_DONE)

        plugin = self._resolve_seal_plugin(session.selector)
        if plugin is not None:
            self._seal(session, plugin, ask)

        self.writer(session.output)
        session.advance(SessionState.WRITTEN)

    def _rt1(self, session: SigningSession) -> RT1Response:
        md_algorithm = self.preparer.md_algorithm or DEFAULT_MD_ALGORITHM
        credential = session.credential
        request = RT1Request(
            selector=session.selector,
            document_digest=hashlib.new(
                md_algorithm, session.document.data
            ).digest(),
            md_algorithm=md_algorithm,
            signing_cert=credential.signing_cert,
        )
        response = self.client.call_rt1(request)
        expected = response.expected_cert_fingerprint
        if expected is not None and expected != credential.fingerprint:
            raise remote_failure(
                ClientErrorCode.ERR_SIGNING_CERT_MISMATCH,
                f"Service expects signing certificate {expected}, "
                f"but {credential.fingerprint} was supplied",
            )
        return response

    def _resolve_seal_plugin(
        self, selector: JurisdictionSelector
    ) -> Optional[SealPlugin]:
        if self.catalog_provider is None or not self.resolver.exists(selector):
            return None
        try:
            catalog = self.catalog_provider()
        except CatalogUnavailable as e:
            logger.warning(
                f"Endpoint catalog unavailable, not sealing: {e.msg}"
            )
            return None
        if not self.resolver.is_configured(selector, catalog):
            logger.info(f"No sealing endpoint configured for {selector}")
            return None
        plugin = self.resolver.build(selector)
        if not plugin.bind(catalog):
            raise SealingFailure(
                f"No sealing endpoint for {selector} with a supported version",
                'seal.error.unsupported_version',
            )
        return plugin

    def _seal(
        self,
        session: SigningSession,
        plugin: SealPlugin,
        ask: QuestionHandler,
    ):
        assert session.output is not None
        execute_checks(Document.from_bytes(session.output), plugin.checks, ask)
        session.advance(SessionState.SEAL_VALIDATED)
        session.output = plugin.apply_seal(session.output, session.credential)
        session.advance(SessionState.SEALED)


def activate(client: NotaryServiceClient) -> bool:
    """
    Check whether the notarial function is activated for the client's user.

    :return:
        The activation status. Callers that require an activated user
        should raise :class:`.NotActivated` if this is ``False``.
    """
    activated = client.login()
    if not activated:
        logger.info("Notarial function is not activated for this user")
    return activated
