import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from .errors import WriteFailure

__all__ = ['atomic_write', 'FileWriter']

logger = logging.getLogger(__name__)


def atomic_write(path: Path, payload: bytes):
    """
    Replace the contents of a file in one step.

    The payload is written to a temporary file in the same directory, which
    is then renamed over the target, so readers see either the old or the
    new contents in full.

    :raises OSError:
        if the file could not be written.
    """
    fd, tmp_name = tempfile.mkstemp(
        dir=str(path.parent), prefix=f'.{path.name}.', suffix='.tmp'
    )
    try:
        with os.fdopen(fd, 'wb') as outf:
            outf.write(payload)
        os.replace(tmp_name, path)
    except OSError:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class FileWriter:
    """
    Writes the final document to a file chosen by the caller.

    :param path:
        Output path.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __call__(self, data: bytes):
        try:
            atomic_write(self.path, data)
        except OSError as e:
            raise WriteFailure(f"Failed to write {self.path}: {e}") from e
        logger.info(f"Wrote {len(data)} bytes to {self.path}")
