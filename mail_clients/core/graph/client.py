"""Thin synchronous Microsoft Graph REST client"""

from typing import Any, Dict, Iterator, Optional

import httpx

from mail_clients.utils.errors import GraphAPIError, NetworkError
from mail_clients.utils.logging import get_logger

logger = get_logger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
NEXT_LINK = "@odata.nextLink"


class GraphClient:
    """Bearer-token authenticated client for the Graph REST API.

    The token is used as supplied; refreshing it is the caller's job.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = GRAPH_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            access_token: OAuth bearer token
            base_url: Graph API root, including the version segment
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not access_token:
            raise ValueError("An access token is required")

        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "GraphClient":
        return self

    def __exit__(self, exc_type, exc_value, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Issue one request and decode the JSON response.

        Raises:
            GraphAPIError: If Graph answers with an error status
            NetworkError: If the request could not be completed
        """
        logger.debug(f"{method} {url}")

        try:
            response = self._http.request(
                method, url, params=params, json=json, headers=headers
            )
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            raise GraphAPIError(
                _error_message(e.response),
                details={"method": method, "url": str(e.request.url)},
                status_code=e.response.status_code,
            ) from e

        except httpx.HTTPError as e:
            raise NetworkError(
                f"Graph request failed: {e}", details={"method": method, "url": url}
            ) from e

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        return self._request("GET", url, params=params, headers=headers)

    def post(
        self,
        url: str,
        json: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        return self._request("POST", url, json=json, headers=headers)

    def iter_pages(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        paging_headers: Optional[Dict[str, str]] = None,
    ) -> Iterator[Dict[str, Any]]:
        """Yield each page of a collection, following ``@odata.nextLink``.

        The next link already encodes the query, so follow-up requests carry
        only ``paging_headers`` (defaults to ``headers``) and no parameters.
        Pages are fetched lazily as the iterator advances.
        """
        paging_headers = headers if paging_headers is None else paging_headers

        page = self.get(url, params=params, headers=headers)
        pages = 1
        while True:
            yield page

            next_link = page.get(NEXT_LINK)
            if not next_link:
                logger.debug(f"Collection {url} exhausted after {pages} page(s)")
                return

            page = self.get(next_link, headers=paging_headers)
            pages += 1

    def iter_items(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        paging_headers: Optional[Dict[str, str]] = None,
    ) -> Iterator[Dict[str, Any]]:
        """Yield every item of a collection across all pages, in order."""
        for page in self.iter_pages(url, params, headers, paging_headers):
            yield from page.get("value", [])


def _error_message(response: httpx.Response) -> str:
    try:
        error = response.json().get("error", {})
    except ValueError:
        error = {}

    if isinstance(error, dict) and error.get("message"):
        code = error.get("code")
        return f"{code}: {error['message']}" if code else error["message"]

    return f"HTTP {response.status_code}"
