"""
Local cache of the sealing endpoint catalog.

The catalog is published at a fixed URL. Before every signing attempt,
a HEAD request compares the published ``Last-Modified`` timestamp with
the one recorded when the cached copy was downloaded, and the catalog is
downloaded again only if the published copy is strictly newer (or if
the server does not report a timestamp at all).

The cache consists of two files in an application-owned directory: the
catalog document exactly as it was downloaded, and a small JSON index
holding its ``Last-Modified`` timestamp. Both are replaced atomically,
and only after a downloaded payload has been parsed successfully.
"""

import json
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Optional, Tuple

import requests

from ..errors import CatalogErrorCode, CatalogUnavailable
from ..fileio import atomic_write
from .api import EndpointCatalog, parse_catalog

__all__ = [
    'CatalogCache',
    'CatalogFetcher',
    'ensure_fresh',
    'FETCH_TIMEOUT_SECONDS',
    'FETCH_CONNECT_TIMEOUT_SECONDS',
]

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 10
FETCH_CONNECT_TIMEOUT_SECONDS = 10

CATALOG_FILE_NAME = 'endpoint-catalog.xml'
INDEX_FILE_NAME = 'endpoint-catalog.json'


def _parse_http_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        ts = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unparseable Last-Modified header '{value}'")
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def is_newer(
    remote_timestamp: Optional[datetime], cached_timestamp: Optional[datetime]
) -> bool:
    """
    Decide whether the published catalog supersedes the cached one.

    A missing remote timestamp always triggers a refresh, and a missing
    cached timestamp counts as infinitely old. Equal timestamps do not
    trigger a refresh.
    """
    if remote_timestamp is None or cached_timestamp is None:
        return True
    return remote_timestamp > cached_timestamp


class CatalogCache:
    """
    On-disk copy of the most recently downloaded endpoint catalog.

    :param cache_dir:
        Directory holding the cache files. Created on first write.
    """

    def __init__(self, cache_dir: Path):
        self.cache_dir = cache_dir
        self.catalog_path = cache_dir / CATALOG_FILE_NAME
        self.index_path = cache_dir / INDEX_FILE_NAME

    def exists(self) -> bool:
        return self.catalog_path.exists()

    @property
    def timestamp(self) -> Optional[datetime]:
        """
        ``Last-Modified`` timestamp of the cached catalog, if known.
        """
        if not self.exists():
            return None
        try:
            with self.index_path.open('r') as inf:
                index_data = json.load(inf)
            raw_ts = index_data.get('last_modified')
            return datetime.fromisoformat(raw_ts) if raw_ts else None
        except (IOError, ValueError, AttributeError) as e:
            logger.warning(
                f"Failed to read catalog cache index at {self.index_path}: {e}"
            )
            return None

    def read_bytes(self) -> bytes:
        return self.catalog_path.read_bytes()

    def load(self) -> EndpointCatalog:
        """
        Parse the cached catalog.

        :raises CatalogUnavailable:
            if there is no cached catalog, or it cannot be parsed.
        """
        try:
            payload = self.read_bytes()
        except IOError as e:
            raise CatalogUnavailable(
                f"No cached endpoint catalog at {self.catalog_path}",
                CatalogErrorCode.XML_NOT_LOADABLE,
            ) from e
        return parse_catalog(payload)

    def store(self, payload: bytes, last_modified: Optional[datetime]):
        """
        Replace the cached catalog and its timestamp.

        :raises OSError:
            if the cache could not be written.
        """
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        index_data = {
            'last_modified': (
                last_modified.isoformat() if last_modified else None
            )
        }
        atomic_write(self.catalog_path, payload)
        atomic_write(self.index_path, json.dumps(index_data).encode('utf8'))
        logger.debug(
            f"Stored endpoint catalog in {self.cache_dir} "
            f"(Last-Modified: {last_modified})"
        )


class CatalogFetcher:
    """
    Keeps a :class:`CatalogCache` in sync with the published catalog.

    :param url:
        Location of the published catalog.
    :param cache:
        The local cache.
    :param session:
        HTTP session to use.
    :param verify:
        Trust anchor setting passed to ``requests``, typically the path
        to a CA bundle.
    :param timeout:
        ``(connect, read)`` timeout pair (in seconds).
    """

    def __init__(
        self,
        url: str,
        cache: CatalogCache,
        session: Optional[requests.Session] = None,
        verify=True,
        timeout=(FETCH_CONNECT_TIMEOUT_SECONDS, FETCH_TIMEOUT_SECONDS),
    ):
        if not url.lower().startswith(('https:', 'http:')):
            raise CatalogUnavailable(
                f"Endpoint catalog URL '{url}' is not an HTTP(S) URL",
                CatalogErrorCode.URL_NOT_VALID,
            )
        self.url = url
        self.cache = cache
        self.session = session or requests.Session()
        self.verify = verify
        self.timeout = timeout

    def _request(self, method: str, failure_code: CatalogErrorCode):
        try:
            response = self.session.request(
                method,
                self.url,
                allow_redirects=True,
                verify=self.verify,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise CatalogUnavailable(
                f"{method} {self.url} failed: {e}", failure_code
            ) from e
        if response.status_code != 200:
            raise CatalogUnavailable(
                f"{method} {self.url} returned status "
                f"{response.status_code}",
                failure_code,
            )
        return response

    def remote_timestamp(self) -> Optional[datetime]:
        """
        Query the ``Last-Modified`` timestamp of the published catalog.

        :raises CatalogUnavailable:
            if the request fails.
        """
        response = self._request('HEAD', CatalogErrorCode.HEAD_HTTP_ERROR)
        return _parse_http_date(response.headers.get('Last-Modified'))

    def download(self) -> Tuple[bytes, Optional[datetime]]:
        """
        Download the published catalog.

        :return:
            The payload and its ``Last-Modified`` timestamp.
        :raises CatalogUnavailable:
            if the request fails.
        """
        response = self._request('GET', CatalogErrorCode.GET_HTTP_ERROR)
        return response.content, _parse_http_date(
            response.headers.get('Last-Modified')
        )

    def _fall_back(self, error: CatalogUnavailable) -> EndpointCatalog:
        if not self.cache.exists():
            raise error
        logger.warning(
            f"Could not refresh endpoint catalog ({error.msg}); "
            f"using cached copy"
        )
        try:
            return self.cache.load()
        except CatalogUnavailable as e:
            raise error from e

    def ensure_fresh(self) -> EndpointCatalog:
        """
        Return the current endpoint catalog, downloading it if the published
        copy is newer than the cached one.

        If the published catalog cannot be retrieved or is malformed, the
        cached copy is used as long as there is one.

        :return:
            An :class:`EndpointCatalog`.
        :raises CatalogUnavailable:
            if neither a fresh nor a cached catalog is available.
        """
        cache = self.cache
        try:
            remote_ts = self.remote_timestamp()
        except CatalogUnavailable as e:
            return self._fall_back(e)

        if cache.exists() and not is_newer(remote_ts, cache.timestamp):
            try:
                return cache.load()
            except CatalogUnavailable as e:
                logger.warning(
                    f"Cached endpoint catalog is unusable, downloading "
                    f"it again: {e.msg}"
                )

        try:
            payload, get_ts = self.download()
            catalog = parse_catalog(payload)
        except CatalogUnavailable as e:
            return self._fall_back(e)

        logger.info(
            f"Downloaded endpoint catalog released {catalog.release} "
            f"from {self.url}"
        )
        try:
            cache.store(payload, get_ts or remote_ts)
        except OSError as e:
            logger.error(
                f"{CatalogErrorCode.NOT_WRITABLE.message_key}: failed to "
                f"write endpoint catalog cache in {cache.cache_dir}: {e}"
            )
        return catalog


def ensure_fresh(
    url: str,
    cache_dir: Path,
    session: Optional[requests.Session] = None,
    verify=True,
) -> EndpointCatalog:
    """
    Convenience wrapper around :meth:`CatalogFetcher.ensure_fresh`.
    """
    fetcher = CatalogFetcher(
        url, CatalogCache(cache_dir), session=session, verify=verify
    )
    return fetcher.ensure_fresh()
