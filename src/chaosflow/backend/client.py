"""GraphQL client for the chaos orchestration backend.

Two operations are used: fetching the caller's projects with their member roles,
and creating a workflow. Neither is retried; a failure is reported once.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Final

import httpx

from chaosflow.auth.credentials import Credentials
from chaosflow.constants import DEFAULT_TIMEOUT_SECONDS, GRAPHQL_PATH
from chaosflow.domain.errors import (
    AuthenticationError,
    SubmissionRejectedError,
    UpstreamServiceError,
)
from chaosflow.domain.models import SubmissionPayload, UserDetails, WorkflowCreated

_LOGGER = logging.getLogger("chaosflow.backend.client")

GET_USER_QUERY: Final[str] = (
    "query getUser($username: String!) {"
    " getUser(username: $username) {"
    " id username"
    " projects { id name members { user_id user_name role } }"
    " } }"
)

CREATE_WORKFLOW_MUTATION: Final[str] = (
    "mutation createChaosWorkFlow($input: ChaosWorkFlowInput!) {"
    " createChaosWorkFlow(input: $input) { workflow_id cluster_id workflow_name } }"
)


class BackendClient:
    """Synchronous backend client bound to one set of credentials."""

    def __init__(
        self,
        credentials: Credentials,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._http = httpx.Client(
            base_url=credentials.endpoint,
            timeout=httpx.Timeout(timeout_seconds),
            headers={"Authorization": credentials.token},
            transport=transport,
        )

    def __enter__(self) -> BackendClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def get_user_details(self, username: str | None = None) -> UserDetails:
        """Return the caller's identity and project memberships."""

        data = self._execute(
            "get_user",
            GET_USER_QUERY,
            {"username": username or self._credentials.username},
        )
        raw_user = data.get("getUser")
        if not isinstance(raw_user, Mapping):
            raise UpstreamServiceError("response has no user", operation="get_user")
        try:
            return UserDetails.from_dict(raw_user)
        except ValueError as exc:
            raise UpstreamServiceError(str(exc), operation="get_user") from exc

    def create_workflow(self, payload: SubmissionPayload) -> WorkflowCreated:
        """Submit ``payload``. Backend rejections raise ``SubmissionRejectedError``."""

        data = self._execute(
            "create_workflow",
            CREATE_WORKFLOW_MUTATION,
            {"input": payload.to_graphql_input()},
            reject_on_errors=True,
        )
        created = data.get("createChaosWorkFlow")
        if not isinstance(created, Mapping):
            raise UpstreamServiceError("response has no created workflow", operation="create_workflow")
        return WorkflowCreated(
            workflow_id=str(created.get("workflow_id") or ""),
            workflow_name=str(created.get("workflow_name") or payload.workflow_name),
            cluster_id=str(created.get("cluster_id") or payload.cluster_id),
        )

    def _execute(
        self,
        operation: str,
        query: str,
        variables: Mapping[str, object],
        *,
        reject_on_errors: bool = False,
    ) -> Mapping[str, object]:
        _LOGGER.debug("backend request", extra={"operation": operation})
        try:
            response = self._http.post(
                GRAPHQL_PATH, json={"query": query, "variables": dict(variables)}
            )
        except httpx.HTTPError as exc:
            raise UpstreamServiceError(
                f"{type(exc).__name__}: {exc}", operation=operation
            ) from exc

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"backend refused the stored credentials (HTTP {response.status_code}); log in again"
            )
        if response.is_error:
            raise UpstreamServiceError(
                response.text[:200] or response.reason_phrase,
                operation=operation,
                http_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamServiceError(
                "response is not valid JSON",
                operation=operation,
                http_status=response.status_code,
            ) from exc
        if not isinstance(body, Mapping):
            raise UpstreamServiceError("response root must be an object", operation=operation)

        messages = _error_messages(body.get("errors"))
        if messages:
            if reject_on_errors:
                raise SubmissionRejectedError(messages)
            raise UpstreamServiceError("; ".join(messages), operation=operation)

        data = body.get("data")
        if not isinstance(data, Mapping):
            raise UpstreamServiceError("response has no data", operation=operation)
        return data


def _error_messages(errors: object) -> tuple[str, ...]:
    if not isinstance(errors, list):
        return ()
    messages: list[str] = []
    for item in errors:
        if isinstance(item, Mapping) and isinstance(item.get("message"), str):
            messages.append(item["message"])
        else:
            messages.append(str(item))
    return tuple(messages)


__all__ = ["CREATE_WORKFLOW_MUTATION", "GET_USER_QUERY", "BackendClient"]
