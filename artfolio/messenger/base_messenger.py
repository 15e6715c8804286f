# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

from __future__ import annotations

import logging
import threading
from typing import Any

import requests
import urllib3

from artfolio.artfolio_exceptions import (
    ArtfolioAuthenticationException,
    ArtfolioConflict,
    ArtfolioConnectionError,
    ArtfolioNoPermission,
    ArtfolioNotFound,
    ArtfolioSeriousException,
    ArtfolioTimeoutError,
)


log = logging.getLogger("messenger")

# the REST gateway of the hosted database lives under this path
Rest_Prefix = "/rest/v1"


class BaseMessenger:
    """Basic communication with the hosted backend's REST gateway.

    Handles the session, the API key headers and the translation of
    HTTP failures into our exceptions; subclasses add one method per
    backend operation.

    Instance Variables:
        api_key (str): the public (anonymous) key of the project.
        token (str | None): a user access token; if None the requests
            are made with the anonymous key only.
    """

    def __init__(
        self,
        server: str | None = None,
        *,
        api_key: str = "",
        token: str | None = None,
        verify_ssl: bool = True,
    ) -> None:
        """Initialize a new BaseMessenger.

        Args:
            server: URL of the backend project, e.g.,
                ``"https://abcd.example.co"``.  If it has no scheme we
                prefix ``https://``.

        Keyword Arguments:
            api_key: sent as the ``apikey`` header with each request.
            token: optional user access token, sent as a bearer token.
                Defaults to the api key.
            verify_ssl (True/False): controls whether SSL certs are checked.
                This is passed through to the ``Session.verify`` parameter
                in the `requests` library.

        Raises:
            ArtfolioConnectionError: the server string cannot be parsed.
        """
        if not server:
            raise ArtfolioConnectionError("No server specified")
        server = server.strip()
        try:
            parsed_url = urllib3.util.parse_url(server)
        except urllib3.exceptions.LocationParseError as e:
            raise ArtfolioConnectionError(f'Cannot parse the URL "{server}"') from e
        if not parsed_url.scheme:
            server = f"https://{server}"
            parsed_url = urllib3.util.parse_url(server)
        if not parsed_url.host:
            raise ArtfolioConnectionError(f'No host in the URL "{server}"')
        while server.endswith("/"):
            server = server[:-1]
        self.base = server
        self.scheme = parsed_url.scheme
        self.api_key = api_key
        self.token = token
        self.session: requests.Session | None = None
        # first number: connection timeout for each API call, second number
        # is read timeout: how long the server might spend executing the call
        self.default_timeout = (10, 30)
        self.SRmutex = threading.Lock()
        self.verify_ssl = verify_ssl
        if not self.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @classmethod
    def clone(cls, m: BaseMessenger) -> BaseMessenger:
        """Clone an existing messenger, keeps token.

        In particular, we have our own mutex and session.
        """
        log.debug("cloning a messenger, but building new session...")
        x = cls(m.base, api_key=m.api_key, token=m.token, verify_ssl=m.verify_ssl)
        x.start()
        return x

    @property
    def server(self) -> str:
        return self.base

    def start(self) -> None:
        """Start the messenger session."""
        if self.session:
            log.debug("already have a requests-session")
            return
        log.debug("starting a new requests-session")
        self.session = requests.Session()
        self.session.mount(
            f"{self.scheme}://", requests.adapters.HTTPAdapter(max_retries=2)
        )
        self.session.verify = self.verify_ssl

    def stop(self) -> None:
        """Stop the messenger."""
        if self.session:
            log.debug("stopping requests-session")
            self.session.close()
            self.session = None

    def isStarted(self) -> bool:
        return bool(self.session)

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.token or self.api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> requests.Response:
        """Make one request against a table, translating failures.

        Args:
            method: "GET", "POST", "DELETE" etc.
            table: the name of the table, e.g., ``"annotations"``.

        Keyword Args:
            params: query parameters in the gateway's filter syntax,
                for example ``{"work_id": "eq.1234"}``.
            json: request body.
            prefer: value for the ``Prefer`` header, which controls
                whether writes echo the resulting rows.

        Returns:
            The response, already checked for success.

        Raises:
            ArtfolioAuthenticationException: 401.
            ArtfolioNoPermission: 403.
            ArtfolioNotFound: 404.
            ArtfolioConflict: 409, e.g., a duplicate favorite.
            ArtfolioSeriousException: any other HTTP error.
            ArtfolioTimeoutError: the server took too long.
            ArtfolioConnectionError: we could not talk to the server.
        """
        extra = {"Prefer": prefer} if prefer else None
        return self._send(
            method,
            f"{self.base}{Rest_Prefix}/{table}",
            params=params,
            json=json,
            headers=self._headers(extra),
        )

    @staticmethod
    def _json(response: requests.Response) -> Any:
        """The decoded body of a successful response.

        Raises:
            ArtfolioSeriousException: the body is not JSON, e.g., an
                HTML page from a proxy in front of the gateway.
        """
        try:
            return response.json()
        except ValueError as e:
            # includes requests.JSONDecodeError
            raise ArtfolioSeriousException(f"Server reply is not JSON: {e}") from None

    def get_bytes(self, url: str) -> bytes:
        """Download a file, e.g., an image from storage, by its full URL."""
        return self._send("GET", url, headers=self._headers()).content

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        if not self.session:
            self.start()
        assert self.session
        if "timeout" not in kwargs:
            kwargs["timeout"] = self.default_timeout
        with self.SRmutex:
            try:
                response = self.session.request(method, url, **kwargs)
                response.raise_for_status()
                return response
            except requests.HTTPError as e:
                if response.status_code == 401:
                    raise ArtfolioAuthenticationException(response.reason) from None
                if response.status_code == 403:
                    raise ArtfolioNoPermission(response.reason) from None
                if response.status_code == 404:
                    raise ArtfolioNotFound(response.reason) from None
                if response.status_code == 409:
                    raise ArtfolioConflict(response.reason) from None
                raise ArtfolioSeriousException(f"Some other sort of error {e}") from None
            except requests.Timeout as err:
                raise ArtfolioTimeoutError(err) from None
            except requests.RequestException as err:
                raise ArtfolioConnectionError(err) from None
