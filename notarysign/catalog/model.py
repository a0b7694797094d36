from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

from xsdata.models.datatype import XmlDate

__NAMESPACE__ = ""


@dataclass(frozen=True)
class Parameter:
    class Meta:
        name = "parameter"

    name: Optional[str] = field(
        default=None,
        metadata={
            "type": "Element",
            "namespace": "",
            "required": True,
        },
    )
    value: Optional[str] = field(
        default=None,
        metadata={
            "type": "Element",
            "namespace": "",
            "required": True,
        },
    )


@dataclass(frozen=True)
class FactoryParameters:
    class Meta:
        name = "factoryParameters"

    parameter: Tuple[Parameter, ...] = field(
        default_factory=tuple,
        metadata={
            "type": "Element",
            "namespace": "",
        },
    )


@dataclass(frozen=True)
class EndPoint:
    class Meta:
        name = "endPoint"

    canton: Optional[str] = field(
        default=None,
        metadata={
            "type": "Element",
            "namespace": "",
            "required": True,
        },
    )
    domain: Optional[str] = field(
        default=None,
        metadata={
            "type": "Element",
            "namespace": "",
            "required": True,
        },
    )
    version: Optional[Decimal] = field(
        default=None,
        metadata={
            "type": "Element",
            "namespace": "",
            "required": True,
        },
    )
    factory_parameters: Optional[FactoryParameters] = field(
        default=None,
        metadata={
            "name": "factoryParameters",
            "type": "Element",
            "namespace": "",
        },
    )
    end_point_url: Optional[str] = field(
        default=None,
        metadata={
            "name": "endPointUrl",
            "type": "Element",
            "namespace": "",
            "required": True,
        },
    )


@dataclass(frozen=True)
class EndPoints:
    class Meta:
        name = "endPoints"

    release: Optional[XmlDate] = field(
        default=None,
        metadata={
            "type": "Element",
            "namespace": "",
            "required": True,
        },
    )
    end_point: Tuple[EndPoint, ...] = field(
        default_factory=tuple,
        metadata={
            "name": "endPoint",
            "type": "Element",
            "namespace": "",
        },
    )
