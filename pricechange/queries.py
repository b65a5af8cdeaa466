"""
GraphQL query builders for the price subgraph.

Query documents are fixed strings with typed variables. Request values such as
token addresses only ever travel in the `variables` map, never in the query
text itself.
"""
from typing import Any, Dict
from pydantic import BaseModel, Field

from . import config


class GraphQLQuery(BaseModel):
    """A GraphQL request payload, posted to the subgraph as JSON."""
    query: str
    variables: Dict[str, Any] = Field(default_factory=dict)
    operation_name: str = Field(..., serialization_alias="operationName")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


TOKEN_PRICE_QUERY = """
query TokenPrice($bundleId: ID!, $tokenId: ID!) {
    bundle(id: $bundleId) {
        ethPrice
    }
    token(id: $tokenId) {
        name
        symbol
        derivedETH
    }
}
"""

TOKEN_DAILY_STATS_QUERY = """
query TokenDailyStats($tokenAddress: String!, $first: Int!) {
    tokenDayDatas(where: { token: $tokenAddress }, first: $first, orderBy: date, orderDirection: desc) {
        id
        date
        priceUSD
        totalLiquidityToken
        totalLiquidityUSD
        totalLiquidityETH
        dailyVolumeETH
        dailyVolumeToken
        dailyVolumeUSD
    }
}
"""


def token_price_query(token_address: str, bundle_id: str = config.BUNDLE_ID) -> GraphQLQuery:
    """Builds the query resolving the ETH bundle price and the token's derived ETH price."""
    return GraphQLQuery(
        query=TOKEN_PRICE_QUERY,
        variables={"bundleId": bundle_id, "tokenId": token_address.lower()},
        operation_name="TokenPrice",
    )


def token_daily_stats_query(token_address: str, number_of_entries: int = 7) -> GraphQLQuery:
    """
    Builds the query for the most recent `number_of_entries` daily records of a token,
    newest first.
    """
    if isinstance(number_of_entries, bool) or not isinstance(number_of_entries, int):
        raise ValueError(f"number_of_entries must be an integer, got {number_of_entries!r}")
    if not 1 <= number_of_entries <= config.MAX_DAILY_ENTRIES:
        raise ValueError(
            f"number_of_entries must be between 1 and {config.MAX_DAILY_ENTRIES}, got {number_of_entries}"
        )

    return GraphQLQuery(
        query=TOKEN_DAILY_STATS_QUERY,
        variables={"tokenAddress": token_address.lower(), "first": number_of_entries},
        operation_name="TokenDailyStats",
    )
