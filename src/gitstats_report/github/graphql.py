"""GitHub GraphQL API client."""

import logging
from typing import Any, cast

from gitstats_report.github.http import GitHubClient, TransportError

logger = logging.getLogger(__name__)


class GraphQLError(Exception):
    """Raised when a GraphQL query returns errors."""

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        self.errors = errors
        messages = [err.get("message", "Unknown error") for err in errors]
        super().__init__(f"GraphQL errors: {'; '.join(messages)}")


# Recently updated repositories of an organization, each with its recently
# updated pull requests and their comments and commits.
PULL_REQUEST_ACTIVITY_QUERY = """
query(
  $login: String!,
  $repositories: Int!,
  $pullRequests: Int!,
  $comments: Int!,
  $commits: Int!
) {
  organization(login: $login) {
    repositories(first: $repositories, orderBy: {field: UPDATED_AT, direction: DESC}) {
      nodes {
        name
        updatedAt
        pullRequests(first: $pullRequests, orderBy: {field: UPDATED_AT, direction: DESC}) {
          nodes {
            author {
              login
            }
            updatedAt
            createdAt
            mergedAt
            closedAt
            state
            title
            number
            url
            comments(first: $comments) {
              nodes {
                createdAt
                author {
                  login
                }
              }
            }
            commits(first: $commits) {
              nodes {
                commit {
                  message
                  authoredDate
                  author {
                    email
                    user {
                      login
                    }
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""


class GraphQLClient:
    """Executes GraphQL queries over the shared HTTP client."""

    GRAPHQL_ENDPOINT = "/graphql"

    def __init__(self, http_client: GitHubClient) -> None:
        self._http = http_client

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute a GraphQL query.

        Args:
            query: GraphQL query string.
            variables: Optional query variables.

        Returns:
            GraphQL response data payload.

        Raises:
            GraphQLError: If the response is not a successful, error-free payload.
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = await self._http.post(self.GRAPHQL_ENDPOINT, json=payload)
        except TransportError as e:
            raise GraphQLError([{"message": str(e)}]) from e

        if not response.is_success:
            logger.error(
                "GraphQL request failed: status=%d, response=%s",
                response.status_code,
                response.data,
            )
            raise GraphQLError([{"message": f"HTTP {response.status_code}"}])

        if not isinstance(response.data, dict):
            raise GraphQLError([{"message": "Invalid GraphQL response format"}])

        if response.data.get("errors"):
            errors = response.data["errors"]
            logger.error("GraphQL errors: %s", errors)
            raise GraphQLError(errors)

        data = response.data.get("data")
        if data is None:
            raise GraphQLError([{"message": "Missing data in GraphQL response"}])

        return cast("dict[str, Any]", data)
