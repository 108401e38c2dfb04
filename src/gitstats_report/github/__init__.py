"""GitHub API transport and clients."""

from gitstats_report.github.auth import AuthenticationError, GitHubAuth
from gitstats_report.github.graphql import (
    PULL_REQUEST_ACTIVITY_QUERY,
    GraphQLClient,
    GraphQLError,
)
from gitstats_report.github.http import (
    GitHubClient,
    GitHubHTTPError,
    GitHubResponse,
    HTTPRateLimitState,
    RateLimitInfo,
    TransportError,
    parse_link_header,
)

__all__ = [
    "PULL_REQUEST_ACTIVITY_QUERY",
    # Auth
    "AuthenticationError",
    "GitHubAuth",
    # HTTP Client
    "GitHubClient",
    "GitHubHTTPError",
    "GitHubResponse",
    # GraphQL Client
    "GraphQLClient",
    "GraphQLError",
    "HTTPRateLimitState",
    "RateLimitInfo",
    "TransportError",
    "parse_link_header",
]
