"""
HTTP client for the management API.

Reads one resource by id and decodes a value out of the response. Every
failure (connection refused, timeout, TLS, non-200 status, undecodable body)
is logged and turned into the caller's default value. Enrichment is best
effort and must never fail the record it is enriching.

Retry strategy (tenacity, same rules as any upstream fetch):
  - Up to lookup_max_attempts attempts
  - Exponential backoff with jitter between attempts
  - Only retries on 5xx and network errors; a 4xx will not get better

Trust policy:
  verify_tls=False accepts any server certificate, which is what internal
  management endpoints with self-signed certificates need. verify_tls=True
  uses the system trust store, or ca_bundle when one is configured.

One instance shares a single httpx.Client connection pool and is safe to
call from many worker threads at once.
"""

import base64
import logging
import ssl
from typing import Callable, Dict, Iterable, Optional, TypeVar, Union
from urllib.parse import quote

import httpx
from models import EndpointConfig
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ACCEPT_MEDIA_TYPE = "application/json"
CUSTOM_HEADER_SEPARATOR = ":"


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, httpx.NetworkError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


def parse_header_specs(specs: Iterable[str]) -> Dict[str, str]:
    """
    Turn "Name: Value" strings into a header dict.

    Splits once on the first ':' so values may contain colons (URLs, times).
    Specs without a separator or with an empty name are skipped.
    """
    headers: Dict[str, str] = {}
    for spec in specs:
        if CUSTOM_HEADER_SEPARATOR not in spec:
            continue
        name, value = spec.split(CUSTOM_HEADER_SEPARATOR, 1)
        name = name.strip()
        if not name:
            continue
        headers[name] = value.strip()
    return headers


def authorization_header(config: EndpointConfig) -> str:
    if config.token:
        return f"Bearer {config.token}"
    credentials = f"{config.username}:{config.password}".encode("utf-8")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def _verify_option(config: EndpointConfig) -> Union[bool, ssl.SSLContext]:
    if not config.verify_tls:
        return False
    if config.ca_bundle:
        return ssl.create_default_context(cafile=config.ca_bundle)
    return True


class ManagementApiClient:
    """Authenticated, failure-absorbing reads against the management API."""

    def __init__(self, config: EndpointConfig, transport: Optional[httpx.BaseTransport] = None):
        self._base_url = config.endpoint.rstrip("/")

        headers = {
            "Authorization": authorization_header(config),
            "Accept": ACCEPT_MEDIA_TYPE,
        }
        headers.update(parse_header_specs(config.headers))

        self._http = httpx.Client(
            headers=headers,
            timeout=config.request_timeout_seconds,
            verify=_verify_option(config),
            transport=transport,
        )
        self._retrying = Retrying(
            stop=stop_after_attempt(config.lookup_max_attempts),
            wait=wait_exponential(multiplier=0.5, max=4) + wait_random(0, 0.5),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def resource_url(self, resource_base_path: str, resource_id: str) -> str:
        return f"{self._base_url}{resource_base_path}/{quote(resource_id, safe='')}"

    def _get(self, url: str) -> httpx.Response:
        response = self._http.get(url)
        if response.status_code >= 500:
            response.raise_for_status()
        return response

    def request_for_value(
        self,
        resource_base_path: str,
        resource_id: str,
        decode: Callable[[httpx.Response], T],
        default: T,
    ) -> T:
        """
        GET {endpoint}{resource_base_path}/{resource_id} and decode the body.

        Returns decode(response) on HTTP 200, default on anything else.
        Never raises.
        """
        url = self.resource_url(resource_base_path, resource_id)

        try:
            # Retrying keeps per-call state; copy it so concurrent lookups do not share it
            response = self._retrying.copy()(self._get, url)
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Management API lookup failed: GET %s Status[%s] - %s",
                url,
                exc.response.status_code,
                exc.response.text,
            )
            return default
        except httpx.HTTPError as exc:
            logger.error("Management API unreachable: GET %s - %s", url, exc)
            return default
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error during management API lookup: GET %s", url)
            return default

        if response.status_code != 200:
            logger.error(
                "Management API lookup failed: GET %s Status[%s] - %s",
                url,
                response.status_code,
                response.text,
            )
            return default

        try:
            return decode(response)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Could not decode management API response for GET %s: %s", url, exc)
            return default

    def close(self) -> None:
        self._http.close()
