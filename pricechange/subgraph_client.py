import httpx
from typing import List, Optional, Dict, Any
from pydantic import ValidationError

from .models import PricePoint, TokenDayData, TokenPrice
from .queries import GraphQLQuery, token_price_query, token_daily_stats_query
from . import config
from .logger import price_logger

class UpstreamError(Exception):
    """Custom exception raised when the subgraph is unreachable or returns an error."""
    pass

class TokenNotFoundError(UpstreamError):
    """Raised when the subgraph has no record of the requested token."""
    pass

class SubgraphClient:
    """
    An async HTTP client for the price subgraph's GraphQL endpoint.
    Features:
    - Connection pooling via a shared httpx.AsyncClient instance.
    - Bounded request timeout.
    - Request tracing with a correlation_id.

    Requests are not retried: the first failure is raised as UpstreamError.
    """

    def __init__(
        self,
        url: str = config.SUBGRAPH_URL,
        bundle_id: str = config.BUNDLE_ID,
        timeout: float = config.SUBGRAPH_TIMEOUT,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initializes the SubgraphClient.
        Args:
            url: The GraphQL endpoint of the subgraph.
            bundle_id: The id of the bundle entity holding the ETH price.
            timeout: Request timeout in seconds.
            headers: Extra headers sent with every request.
        """
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers)
        self.url = url
        self.bundle_id = bundle_id

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self._client.aclose()

    async def _execute(self, query: GraphQLQuery, correlation_id: str) -> Dict[str, Any]:
        """
        Posts a GraphQL query and returns its `data` object.
        Raises:
            UpstreamError: On timeouts, transport errors, non-2xx responses,
                undecodable bodies or GraphQL errors.
        """
        headers = {"X-Correlation-ID": correlation_id}

        try:
            price_logger.info(
                f"Querying {query.operation_name} at {self.url}, correlation_id={correlation_id}"
            )
            response = await self._client.post(self.url, json=query.to_payload(), headers=headers)
            response.raise_for_status()
            body = response.json()

        except httpx.TimeoutException as e:
            price_logger.warning(
                f"Request timed out for {self.url}: {e}, correlation_id={correlation_id}"
            )
            raise UpstreamError(f"Subgraph request timed out, correlation_id={correlation_id}") from e

        except httpx.HTTPStatusError as e:
            price_logger.error(
                f"HTTP Status Error for {self.url}: {e}, correlation_id={correlation_id}"
            )
            raise UpstreamError(
                f"Subgraph responded with status {e.response.status_code}, correlation_id={correlation_id}"
            ) from e

        except httpx.RequestError as e:
            price_logger.error(
                f"Request Error for {self.url}: {e}, correlation_id={correlation_id}"
            )
            raise UpstreamError(f"Subgraph is unreachable: {e}, correlation_id={correlation_id}") from e

        except ValueError as e:
            price_logger.error(
                f"Invalid JSON from {self.url}: {e}, correlation_id={correlation_id}"
            )
            raise UpstreamError(f"Subgraph returned invalid JSON, correlation_id={correlation_id}") from e

        if not isinstance(body, dict):
            raise UpstreamError(f"Unexpected subgraph response shape, correlation_id={correlation_id}")

        # GraphQL reports query failures in the body of a 200 response
        if body.get("errors"):
            messages = "; ".join(str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in body["errors"])
            price_logger.error(
                f"GraphQL errors from {self.url}: {messages}, correlation_id={correlation_id}"
            )
            raise UpstreamError(f"Subgraph query failed: {messages}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise UpstreamError(f"Subgraph response has no data, correlation_id={correlation_id}")
        return data

    async def fetch_current_price(self, token_address: str, correlation_id: str) -> TokenPrice:
        """Retrieves the token's name, symbol and derived ETH price together with the ETH price."""
        data = await self._execute(token_price_query(token_address, self.bundle_id), correlation_id)

        token = data.get("token")
        if token is None:
            raise TokenNotFoundError(f"Token {token_address} not found, correlation_id={correlation_id}")

        bundle = data.get("bundle")
        if bundle is None:
            raise UpstreamError(f"Bundle {self.bundle_id} not found, correlation_id={correlation_id}")

        if not isinstance(token, dict) or not isinstance(bundle, dict):
            raise UpstreamError(f"Malformed token price data, correlation_id={correlation_id}")

        try:
            return TokenPrice(ethPrice=bundle.get("ethPrice"), **token)
        except (ValidationError, TypeError) as e:
            raise UpstreamError(f"Malformed token price data: {e}") from e

    async def fetch_token_day_datas(
        self, token_address: str, count: int, correlation_id: str
    ) -> List[TokenDayData]:
        """Retrieves the `count` most recent daily records for a token, newest first."""
        data = await self._execute(token_daily_stats_query(token_address, count), correlation_id)

        try:
            return [TokenDayData(**d) for d in data.get("tokenDayDatas") or []]
        except (ValidationError, TypeError) as e:
            raise UpstreamError(f"Malformed token day data: {e}") from e

    async def fetch_daily_series(
        self, token_address: str, count: int, correlation_id: str
    ) -> List[PricePoint]:
        """
        Retrieves the daily USD price series of a token, most recent first.
        An unknown token or a token without history yields an empty list.
        """
        day_datas = await self.fetch_token_day_datas(token_address, count, correlation_id)
        return [d.to_price_point() for d in day_datas]
