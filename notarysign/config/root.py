from dataclasses import dataclass
from typing import Dict, Optional, Type, TypeVar

import yaml
from pyhanko.config import api
from pyhanko.config.errors import ConfigurationError
from pyhanko.config.logging import LogConfig, parse_logging_config

from .sections import (
    AppearanceSettings,
    CatalogSettings,
    NotaryServiceSettings,
    SelectorListSettings,
    SignatureValidatorSettings,
)

__all__ = ['NotarySignConfig', 'parse_config']

ROOT_KEYS = {
    'notary_service',
    'catalog',
    'selector_list',
    'signature_validator',
    'appearance',
    'logging',
}

SectionType = TypeVar('SectionType', bound=api.ConfigurableMixin)


@dataclass(frozen=True)
class NotarySignConfig:
    """
    Parsed configuration file.

    Sections that are absent from the file are ``None``; the accessor
    methods raise a :class:`ConfigurationError` in that case.
    """

    notary_service: Optional[NotaryServiceSettings]
    catalog: Optional[CatalogSettings]
    selector_list: Optional[SelectorListSettings]
    signature_validator: Optional[SignatureValidatorSettings]
    appearance: AppearanceSettings

    log_config: Dict[Optional[str], LogConfig]
    """
    Per-module logging configuration. The ``None`` key houses the
    configuration for the root logger.
    """

    raw_config: dict
    """
    The raw config data parsed into a Python dictionary.
    """

    @staticmethod
    def _require(section, name: str):
        if section is None:
            raise ConfigurationError(
                f"The configuration has no '{name}' section."
            )
        return section

    def get_notary_service(self) -> NotaryServiceSettings:
        return self._require(self.notary_service, 'notary-service')

    def get_catalog(self) -> CatalogSettings:
        return self._require(self.catalog, 'catalog')

    def get_selector_list(self) -> SelectorListSettings:
        # the selector list works without a URL, it just won't update
        return self.selector_list or SelectorListSettings()

    def get_signature_validator(self) -> SignatureValidatorSettings:
        return self._require(self.signature_validator, 'signature-validator')


def _parse_section(
    config_dict: dict, key: str, cls: Type[SectionType]
) -> Optional[SectionType]:
    try:
        section_dict = config_dict[key]
    except KeyError:
        return None
    if section_dict is None:
        section_dict = {}
    try:
        return cls.from_config(section_dict)
    except ConfigurationError as e:
        raise ConfigurationError(
            f"Error in configuration section '{key}': {e}"
        ) from e


def parse_config(yaml_str) -> NotarySignConfig:
    """
    Parse a YAML configuration file.

    :param yaml_str:
        The file's contents, or a file-like object.
    :raises ConfigurationError:
        if the configuration is invalid.
    """
    try:
        config_dict = yaml.safe_load(yaml_str) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse YAML: {e}") from e
    api.check_config_keys('NotarySignConfig', ROOT_KEYS, config_dict)
    config_dict = {
        key.replace('_', '-'): value for key, value in config_dict.items()
    }
    return NotarySignConfig(
        notary_service=_parse_section(
            config_dict, 'notary-service', NotaryServiceSettings
        ),
        catalog=_parse_section(config_dict, 'catalog', CatalogSettings),
        selector_list=_parse_section(
            config_dict, 'selector-list', SelectorListSettings
        ),
        signature_validator=_parse_section(
            config_dict, 'signature-validator', SignatureValidatorSettings
        ),
        appearance=(
            _parse_section(config_dict, 'appearance', AppearanceSettings)
            or AppearanceSettings()
        ),
        log_config=parse_logging_config(config_dict.get('logging') or {}),
        raw_config=config_dict,
    )
