from dataclasses import dataclass
from typing import Optional

import requests
from pyhanko.config.errors import ConfigurationError

from ..config import NotarySignConfig

__all__ = ['CLIContext']


@dataclass
class CLIContext:
    """
    Context object holding settings gathered during a CLI invocation.
    This object is passed around as a ``click`` context object.
    """

    config: Optional[NotarySignConfig] = None
    """
    Parsed configuration file, if there is one.
    """

    session: Optional[requests.Session] = None
    """
    HTTP session shared by all requests made during the invocation.
    """

    def require_config(self) -> NotarySignConfig:
        if self.config is None:
            raise ConfigurationError(
                "This command requires a configuration file."
            )
        return self.config

    def get_session(self) -> requests.Session:
        if self.session is None:
            self.session = requests.Session()
        return self.session
