from typing import Any, Optional, Type, TypeVar

from lxml import etree
from xsdata.exceptions import ParserError
from xsdata.formats.dataclass.parsers import XmlParser
from xsdata.formats.dataclass.parsers.config import ParserConfig
from xsdata.formats.dataclass.parsers.handlers import LxmlEventHandler
from xsdata.formats.dataclass.parsers.handlers.lxml import EVENTS

__all__ = ['XmlPayloadError', 'parse_xml_payload', 'required']


T = TypeVar('T')


class XmlPayloadError(ValueError):
    """
    Raised when an XML payload cannot be bound to the expected structure.
    """

    def __init__(self, msg: str):
        self.msg = msg
        super().__init__(msg)


class _StrictLxmlEventHandler(LxmlEventHandler):
    # No recovery, no DTDs, no entity resolution, no network access

    def parse(self, source: Any, ns_map: dict[Optional[str], str]) -> Any:
        ctx = etree.iterparse(
            source,
            EVENTS,
            recover=False,
            remove_comments=True,
            load_dtd=False,
            resolve_entities=False,
            no_network=True,
        )
        return self.process_context(ctx, ns_map)


def parse_xml_payload(payload: bytes, clazz: Type[T]) -> T:
    """
    Bind an XML payload to a generated dataclass.

    :param payload:
        The raw XML document.
    :param clazz:
        The dataclass of the root element.
    :return:
        An instance of ``clazz``.
    :raises XmlPayloadError:
        if the payload is not well-formed or does not match ``clazz``.
    """
    parser = XmlParser(
        config=ParserConfig(
            load_dtd=False,
            process_xinclude=False,
            fail_on_unknown_properties=False,
            fail_on_unknown_attributes=False,
        ),
        handler=_StrictLxmlEventHandler,
    )
    try:
        return parser.from_bytes(payload, clazz=clazz)
    except (etree.XMLSyntaxError, ParserError) as e:
        raise XmlPayloadError(
            f"Failed to parse {clazz.__name__} payload: {e}"
        ) from e


def required(thing: Optional[T], descr: str) -> T:
    if thing is None:
        raise XmlPayloadError(f"{descr} must be provided")
    return thing
