"""Pull request activity from a single GraphQL query.

One query returns the organization's recently updated repositories with
their recent pull requests, comments and commits. The nested result is
validated, filtered to the period and flattened per repository.
"""

import logging
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from gitstats_report.config import BatchConfig
from gitstats_report.github.graphql import PULL_REQUEST_ACTIVITY_QUERY
from gitstats_report.models import (
    CommentActivity,
    CommitActivity,
    Period,
    PullActivity,
    RepoPullActivity,
)

logger = logging.getLogger(__name__)

NodeT = TypeVar("NodeT")


class BatchQueryError(Exception):
    """The activity query returned a payload that cannot be interpreted."""


class SupportsExecute(Protocol):
    """Anything that can run a GraphQL query."""

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]: ...


class _Node(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _Connection(_Node, Generic[NodeT]):
    nodes: list[NodeT | None] = Field(default_factory=list)


class _Actor(_Node):
    login: str


class _Comment(_Node):
    created_at: datetime
    author: _Actor | None = None


class _CommitAuthor(_Node):
    email: str | None = None
    user: _Actor | None = None


class _CommitDetail(_Node):
    message: str = ""
    authored_date: datetime
    author: _CommitAuthor | None = None


class _PullCommit(_Node):
    commit: _CommitDetail


class _PullRequest(_Node):
    author: _Actor | None = None
    title: str
    number: int
    url: str
    state: str
    created_at: datetime
    updated_at: datetime
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    comments: _Connection[_Comment] = Field(default_factory=_Connection[_Comment])
    commits: _Connection[_PullCommit] = Field(default_factory=_Connection[_PullCommit])


class _Repository(_Node):
    name: str
    updated_at: datetime
    pull_requests: _Connection[_PullRequest]


class _Organization(_Node):
    repositories: _Connection[_Repository]


def _present(connection: _Connection[NodeT]) -> list[NodeT]:
    return [node for node in connection.nodes if node is not None]


def _flatten_pull(node: _PullRequest) -> PullActivity | None:
    if node.author is None:
        return None

    comments = [
        CommentActivity(author=comment.author.login, date=comment.created_at)
        for comment in _present(node.comments)
        if comment.author is not None
    ]
    commits = [
        CommitActivity(
            author=item.commit.author.user.login,
            date=item.commit.authored_date,
            message=item.commit.message,
        )
        for item in _present(node.commits)
        if item.commit.author is not None and item.commit.author.user is not None
    ]
    return PullActivity(
        author=node.author.login,
        title=node.title,
        number=node.number,
        created_at=node.created_at,
        merged_at=node.merged_at,
        closed_at=node.closed_at,
        updated_at=node.updated_at,
        state=node.state,
        url=node.url,
        comments=comments,
        commits=commits,
    )


def flatten_activity(data: dict[str, Any], period: Period) -> list[RepoPullActivity]:
    """Flatten a pull request activity payload.

    Repositories not updated after ``period.previous`` or without pull
    requests are dropped, as are pull requests not updated after it.
    Pull requests, comments and commits without a resolved GitHub account
    are left out.

    Raises:
        BatchQueryError: If the payload does not have the expected shape.
    """
    raw_org = data.get("organization") if isinstance(data, dict) else None
    if raw_org is None:
        raise BatchQueryError("Activity query returned no organization")

    try:
        organization = _Organization.model_validate(raw_org)
    except ValidationError as e:
        raise BatchQueryError(f"Malformed activity payload: {e}") from e

    activity = []
    for repo in _present(organization.repositories):
        pull_nodes = _present(repo.pull_requests)
        if repo.updated_at <= period.previous or not pull_nodes:
            continue

        pulls = []
        for node in pull_nodes:
            if node.updated_at <= period.previous:
                continue
            pull = _flatten_pull(node)
            if pull is None:
                logger.debug("Skipping %s#%d with unknown author", repo.name, node.number)
                continue
            pulls.append(pull)

        activity.append(RepoPullActivity(repo=repo.name, pulls=pulls))
    return activity


class PullRequestActivityAggregator:
    """Collects recent pull request activity in one round trip."""

    def __init__(self, graphql_client: SupportsExecute, limits: BatchConfig | None = None) -> None:
        self._graphql = graphql_client
        self._limits = limits or BatchConfig()

    def variables(self, owner: str) -> dict[str, Any]:
        """Query variables for ``owner``."""
        return {
            "login": owner,
            "repositories": self._limits.repositories,
            "pullRequests": self._limits.pull_requests,
            "comments": self._limits.comments,
            "commits": self._limits.commits,
        }

    async def fetch(self, owner: str, period: Period) -> list[RepoPullActivity]:
        """Run the activity query and flatten its result.

        Raises:
            GraphQLError: If the query fails.
            BatchQueryError: If the result is malformed.
        """
        logger.info("Querying pull request activity for %s", owner)
        data = await self._graphql.execute(PULL_REQUEST_ACTIVITY_QUERY, self.variables(owner))
        activity = flatten_activity(data, period)
        logger.info("Pull request activity: %d repositories", len(activity))
        return activity
