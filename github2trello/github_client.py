"""GitHub API client: issues, labels and project board field values."""

from __future__ import annotations

import logging
from typing import Any

import requests

from github2trello.exceptions import GitHubAPIError
from github2trello.models import (
    Issue,
    LinkedPullRequest,
    LinkedPullRequestsField,
    MilestoneField,
    NumberField,
    ProjectAttributes,
    ProjectFieldValue,
    SingleSelectField,
    TextField,
    UnknownField,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "github2trello/0.1.0"

PROJECT_ID_QUERY = """
query($owner: String!, $projectNumber: Int!) {
  organization(login: $owner) {
    projectV2(number: $projectNumber) {
      id
    }
  }
}
"""

PROJECT_ITEMS_QUERY = """
query($projectId: ID!, $cursor: String) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: 100, after: $cursor) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          content {
            ... on Issue {
              number
            }
          }
          fieldValues(first: 50) {
            nodes {
              __typename
              ... on ProjectV2ItemFieldTextValue {
                text
                field {
                  ... on ProjectV2FieldCommon {
                    name
                  }
                }
              }
              ... on ProjectV2ItemFieldNumberValue {
                number
                field {
                  ... on ProjectV2FieldCommon {
                    name
                  }
                }
              }
              ... on ProjectV2ItemFieldSingleSelectValue {
                name
                field {
                  ... on ProjectV2FieldCommon {
                    name
                  }
                }
              }
              ... on ProjectV2ItemFieldDateValue {
                date
                field {
                  ... on ProjectV2FieldCommon {
                    name
                  }
                }
              }
              ... on ProjectV2ItemFieldMilestoneValue {
                milestone {
                  title
                  dueOn
                  url
                }
                field {
                  ... on ProjectV2FieldCommon {
                    name
                  }
                }
              }
              ... on ProjectV2ItemFieldPullRequestValue {
                pullRequests(first: 10) {
                  nodes {
                    number
                    permalink
                    title
                  }
                }
                field {
                  ... on ProjectV2FieldCommon {
                    name
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


def parse_field_value(node: dict[str, Any]) -> tuple[str, ProjectFieldValue] | None:
    """Turn one GraphQL field-value node into (field name, typed value).

    Returns None for nodes that carry no field name (GitHub's built-in
    values such as repository or labels come back like that).
    """
    field_name = (node.get("field") or {}).get("name")
    if not field_name:
        return None

    typename = node.get("__typename")
    value: ProjectFieldValue
    if typename == "ProjectV2ItemFieldTextValue":
        value = TextField(node.get("text") or "")
    elif typename == "ProjectV2ItemFieldNumberValue" and node.get("number") is not None:
        value = NumberField(float(node["number"]))
    elif typename == "ProjectV2ItemFieldSingleSelectValue":
        value = SingleSelectField(node.get("name") or "")
    elif typename == "ProjectV2ItemFieldMilestoneValue" and node.get("milestone"):
        milestone = node["milestone"]
        value = MilestoneField(
            title=milestone.get("title") or "",
            url=milestone.get("url") or "",
            due_on=milestone.get("dueOn"),
        )
    elif typename == "ProjectV2ItemFieldPullRequestValue":
        pull_requests = (node.get("pullRequests") or {}).get("nodes") or []
        value = LinkedPullRequestsField(
            tuple(
                LinkedPullRequest(
                    number=pr["number"],
                    url=pr.get("permalink") or "",
                    title=pr.get("title") or "",
                )
                for pr in pull_requests
            )
        )
    else:
        value = UnknownField(raw=node)
    return field_name, value


class GitHubClient:
    """Read-only access to one repository and its organisation project board"""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = DEFAULT_API_URL,
        session: requests.Session | None = None,
    ):
        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            }
        )

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, params=params, json=json_body, timeout=30)
        except requests.RequestException as e:
            raise GitHubAPIError(
                f"Network error for {method} {path}: {e}", endpoint=path
            ) from e

        if response.status_code >= 400:
            raise GitHubAPIError(
                f"GitHub API {method} {path} failed with HTTP {response.status_code}: "
                f"{response.text[:200]}",
                endpoint=path,
                status_code=response.status_code,
                response_text=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(
                f"GitHub API {method} {path} returned invalid JSON: {response.text[:200]}",
                endpoint=path,
                status_code=response.status_code,
                response_text=response.text,
            ) from e

    def _paginate(self, path: str, params: dict[str, Any], max_pages: int) -> list[dict]:
        params = dict(params)
        per_page = params.setdefault("per_page", 100)
        results: list[dict] = []
        for page in range(1, max_pages + 1):
            params["page"] = page
            data = self._request("GET", path, params=params)
            if not isinstance(data, list):
                break
            results.extend(data)
            if len(data) < per_page:
                break
        return results

    def list_issues(self, max_pages: int = 5) -> list[Issue]:
        """Open issues (and pull requests) of the repository, up to ``max_pages`` pages"""
        data = self._paginate(
            f"repos/{self.owner}/{self.repo}/issues", {"state": "open"}, max_pages
        )
        return [Issue.from_api(item) for item in data]

    def list_labels(self, max_pages: int = 5) -> list[str]:
        data = self._paginate(f"repos/{self.owner}/{self.repo}/labels", {}, max_pages)
        return [label["name"] for label in data if label.get("name")]

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = self._request(
            "POST", "graphql", json_body={"query": query, "variables": variables or {}}
        )
        if not isinstance(payload, dict):
            raise GitHubAPIError("GraphQL returned an unexpected payload", endpoint="graphql")
        if payload.get("errors"):
            messages = "; ".join(error.get("message", str(error)) for error in payload["errors"])
            raise GitHubAPIError(
                f"GraphQL query failed: {messages}",
                endpoint="graphql",
                response_text=str(payload["errors"]),
            )
        return payload.get("data") or {}

    def get_project_id(self, project_number: int) -> str:
        data = self.graphql(
            PROJECT_ID_QUERY, {"owner": self.owner, "projectNumber": project_number}
        )
        project = (data.get("organization") or {}).get("projectV2")
        if not project:
            raise GitHubAPIError(
                f"Project {self.owner}/{project_number} not found "
                "or not accessible with this token",
                endpoint="graphql",
            )
        return project["id"]

    def get_project_attributes(self, project_number: int) -> dict[int, ProjectAttributes]:
        """Custom field values of every issue on the project, keyed by issue number.

        Resolves the project id first, then pages through the project items.
        Draft items and pull requests have no issue number and are skipped.
        """
        project_id = self.get_project_id(project_number)

        attributes: dict[int, ProjectAttributes] = {}
        cursor = None
        while True:
            data = self.graphql(PROJECT_ITEMS_QUERY, {"projectId": project_id, "cursor": cursor})
            items = ((data.get("node") or {}).get("items")) or {}

            for item in items.get("nodes") or []:
                issue_number = (item.get("content") or {}).get("number")
                if issue_number is None:
                    continue
                record = attributes.setdefault(issue_number, ProjectAttributes())
                for node in (item.get("fieldValues") or {}).get("nodes") or []:
                    parsed = parse_field_value(node)
                    if parsed:
                        name, value = parsed
                        record.fields[name] = value

            page_info = items.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")

        logger.debug(f"Loaded project attributes for {len(attributes)} issues")
        return attributes
