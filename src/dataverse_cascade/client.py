# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

from typing import Optional

import requests

from azure.core.credentials import TokenCredential

from .core._auth import _AuthManager
from .core.config import DataverseConfig
from .core.telemetry import create_telemetry_manager
from .data._odata import _ODataClient
from .operations.cascade import CascadeOperations
from .operations.deleter import CascadeDeleter


class DataverseClient:
    """
    Entry point for restrict-aware cascade deletion in a Dataverse environment.

    The client holds the credential, the configuration and (inside a ``with``
    block) a pooled HTTP session. Web API traffic goes through an internal
    :class:`~dataverse_cascade.data._odata._ODataClient`, created on first use, and
    the cascade itself is run by a :class:`~dataverse_cascade.operations.deleter.CascadeDeleter`
    bound to it. Operations are exposed as ``client.cascade``
    (:class:`~dataverse_cascade.operations.cascade.CascadeOperations`).

    Prefer the context manager so every request of a cascade reuses one connection
    pool, which is closed on exit::

        with DataverseClient(base_url, credential) as client:
            results = client.cascade.delete("account", account_ids)

    Outside a ``with`` block each request opens its own connection; call
    :meth:`close` when finished.

    :param base_url: Environment URL such as ``"https://org.crm.dynamics.com"``; a
        trailing slash is dropped.
    :type base_url: :class:`str`
    :param credential: Azure Identity credential used to acquire bearer tokens.
    :type credential: ~azure.core.credentials.TokenCredential
    :param config: Batch size, lookup chunking, read-only mode, HTTP and telemetry
        settings. Defaults to :meth:`~dataverse_cascade.core.config.DataverseConfig.from_env`.
    :type config: ~dataverse_cascade.core.config.DataverseConfig or None

    :raises ValueError: If ``base_url`` is empty.
    :raises TypeError: If ``credential`` is not a ``TokenCredential``.

    Example:
        Dry run first, then delete::

            from azure.identity import InteractiveBrowserCredential
            from dataverse_cascade import DataverseClient
            from dataverse_cascade.core.config import DataverseConfig

            credential = InteractiveBrowserCredential()
            url = "https://org.crm.dynamics.com"

            with DataverseClient(url, credential, DataverseConfig(read_only=True)) as client:
                preview = client.cascade.delete("account", [id1, id2])

            with DataverseClient(url, credential) as client:
                results = client.cascade.delete("account", [id1, id2])
    """

    def __init__(
        self,
        base_url: str,
        credential: TokenCredential,
        config: Optional[DataverseConfig] = None,
    ) -> None:
        self.auth = _AuthManager(credential)
        self._base_url = (base_url or "").rstrip("/")
        if not self._base_url:
            raise ValueError("base_url is required.")
        self._config = config or DataverseConfig.from_env()
        self._odata: Optional[_ODataClient] = None
        self._deleter: Optional[CascadeDeleter] = None
        self._session: Optional[requests.Session] = None
        self._owns_session: bool = False

        self.cascade = CascadeOperations(self)

    def __enter__(self) -> "DataverseClient":
        """Open a pooled :class:`requests.Session` (once) and return the client."""
        if self._session is None:
            self._session = requests.Session()
            self._owns_session = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """
        Release the Web API client and the pooled session.

        Calling it again, or without ever entering the context manager, is harmless.
        """
        if self._odata is not None:
            self._odata.close()
            self._odata = None
        self._deleter = None
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None
            self._owns_session = False

    def _get_odata(self) -> _ODataClient:
        """Web API client, created on first use and bound to the pooled session if one is open."""
        if self._odata is None:
            self._odata = _ODataClient(self.auth, self._base_url, self._config, session=self._session)
        return self._odata

    def _get_deleter(self) -> CascadeDeleter:
        """Cascade deleter over the Web API client, configured from ``DataverseConfig``."""
        if self._deleter is None:
            self._deleter = CascadeDeleter(
                self._get_odata(),
                batch_size=self._config.batch_size,
                telemetry=create_telemetry_manager(self._config.telemetry),
            )
        return self._deleter


__all__ = ["DataverseClient"]
