import logging
from typing import Any, Callable, Dict, Iterable, Optional

from azure.core.exceptions import HttpResponseError

from azgraph.config import IntegrationConfig
from azgraph.errors import ProviderAPIError
from azgraph.provider import create_credential, to_raw

RawCallback = Callable[[Dict[str, Any]], None]


class ResourceClient:
    """
    Base for the per-category clients.

    The SDK client is created on first use from the instance config; tests
    pass ``client`` directly. Iteration is exhaustive and sequential: each
    item is handed to the callback before the next page is requested.
    """

    def __init__(
        self,
        config: IntegrationConfig,
        logger: Optional[logging.Logger] = None,
        client: Any = None,
    ):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self._credential = None
        self._client = client

    @property
    def credential(self):
        if self._credential is None:
            self._credential = create_credential(self.config)
        return self._credential

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> Any:
        raise NotImplementedError

    def _call(self, endpoint: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except HttpResponseError as exc:
            raise ProviderAPIError(endpoint, exc.status_code, cause=exc) from exc

    def _iterate(self, endpoint: str, pages: Callable[[], Iterable[Any]], callback: RawCallback) -> None:
        count = 0
        try:
            for item in pages():
                callback(to_raw(item))
                count += 1
        except HttpResponseError as exc:
            raise ProviderAPIError(endpoint, exc.status_code, cause=exc) from exc
        self.logger.debug("Iterated %d item(s) from %s", count, endpoint)
