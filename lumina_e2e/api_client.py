"""Backend API client for test-data setup, teardown and health checks.

Every operation returns an `ApiResponse` instead of raising: callers decide
whether a failure aborts setup (fixtures raise) or is tolerated (cleanup logs
a warning).

Usage:
    async with LuminaApiClient() as api:
        created = await api.create_user(user)
        auth = await api.authenticate_user(user.email, user.password)
        progress = await api.get_user_progress(created.data["id"], auth.data["token"])
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

import httpx

from lumina_e2e.config import SERVICE_NAMES, E2eConfig, settings
from lumina_e2e.readiness import DEFAULT_POLL_INTERVAL, ServiceHealth, ServiceReadinessPoller, settle_all
from lumina_e2e.test_data import TestUser

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSPORT_FAILURE_STATUS = 500
FEEDBACK_TYPES = ("like", "dislike")

CREATE_USER_MUTATION = """
mutation CreateUser($input: CreateUserInput!) {
  createUser(input: $input) {
    id
    email
    firstName
    lastName
  }
}
"""

LOGIN_MUTATION = """
mutation Login($input: LoginInput!) {
  login(input: $input) {
    token
    user {
      id
      email
    }
  }
}
"""

DELETE_USER_MUTATION = """
mutation DeleteUser($id: ID!) {
  deleteUser(id: $id) {
    success
  }
}
"""

USER_PROGRESS_QUERY = """
query GetUserProgress($userId: ID!) {
  userProgress(userId: $userId) {
    completedCourses
    totalCourses
    currentLevel
    achievements
  }
}
"""

SUBMIT_FEEDBACK_MUTATION = """
mutation SubmitFeedback($input: FeedbackInput!) {
  submitFeedback(input: $input) {
    id
    success
  }
}
"""


@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """Uniform envelope for every client call."""

    success: bool
    status: int
    data: Optional[T] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.success and (not 200 <= self.status < 300 or self.error is not None):
            raise ValueError(f"Successful response needs a 2xx status and no error (status={self.status})")
        if not self.success and not self.error:
            raise ValueError("Failed response needs an error message")

    @classmethod
    def ok(cls, data: Optional[T], status: int = 200) -> "ApiResponse[T]":
        return cls(success=True, status=status, data=data)

    @classmethod
    def fail(cls, error: str, status: int, data: Optional[T] = None) -> "ApiResponse[T]":
        return cls(success=False, status=status, data=data, error=error or "Unknown error")


class GraphQLTransportError(Exception):
    """Raised internally when a GraphQL request never produced a usable response."""


class LuminaApiClient:
    """Thin async wrapper over the Lumina GraphQL services.

    Args:
        config: Configuration providing service URLs (default: module settings)
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        config: E2eConfig | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or settings
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "LuminaApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---- transport helpers ---------------------------------------------------------
    async def _graphql(
        self,
        service: str,
        query: str,
        variables: Dict[str, Any],
        token: str | None = None,
    ) -> Tuple[httpx.Response, Dict[str, Any]]:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = await self._client.post(
                self.config.graphql_url(service),
                json={"query": query, "variables": variables},
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise GraphQLTransportError(str(exc) or exc.__class__.__name__) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        return response, payload

    @staticmethod
    def _first_error(payload: Dict[str, Any], default: str) -> str:
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get("message"):
            return str(errors[0]["message"])
        return default

    @staticmethod
    def _field(payload: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
        """The named object under `data`, or None when missing or not an object."""
        data = payload.get("data")
        value = data.get(name) if isinstance(data, dict) else None
        return value if isinstance(value, dict) else None

    # ---- health ---------------------------------------------------------------------
    async def _service_health(self, service: str) -> bool:
        response = await self._client.get(self.config.health_url(service))
        return response.is_success

    def _health_checks(self):
        return {
            service: (lambda service=service: self._service_health(service))
            for service in SERVICE_NAMES
        }

    async def health_check(self) -> ServiceHealth:
        """One health request per service; a failing request counts as unhealthy."""
        return await settle_all(self._health_checks())

    async def wait_for_services(
        self,
        timeout: float = 60.0,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> bool:
        poller = ServiceReadinessPoller(self._health_checks(), interval=interval, timeout=timeout)
        return await poller.wait()

    # ---- users ----------------------------------------------------------------------
    async def create_user(self, user: TestUser) -> ApiResponse[Dict[str, str]]:
        """Create the user; the token is left empty until `authenticate_user`."""
        variables = {
            "input": {
                "email": user.email,
                "password": user.password,
                "firstName": user.first_name,
                "lastName": user.last_name,
            }
        }
        try:
            response, payload = await self._graphql("auth-service", CREATE_USER_MUTATION, variables)
        except GraphQLTransportError as exc:
            return ApiResponse.fail(str(exc), TRANSPORT_FAILURE_STATUS)

        created = self._field(payload, "createUser")
        if response.is_success and created and created.get("id") is not None:
            return ApiResponse.ok({"id": str(created["id"]), "token": ""}, response.status_code)
        return ApiResponse.fail(self._first_error(payload, "Failed to create user"), response.status_code)

    async def authenticate_user(self, email: str, password: str) -> ApiResponse[Dict[str, str]]:
        variables = {"input": {"email": email, "password": password}}
        try:
            response, payload = await self._graphql("auth-service", LOGIN_MUTATION, variables)
        except GraphQLTransportError as exc:
            return ApiResponse.fail(str(exc), TRANSPORT_FAILURE_STATUS)

        login = self._field(payload, "login")
        if response.is_success and login and login.get("token"):
            return ApiResponse.ok({"token": login["token"]}, response.status_code)
        return ApiResponse.fail(self._first_error(payload, "Authentication failed"), response.status_code)

    async def cleanup_user(self, user_id: str | None, token: str | None) -> Optional[ApiResponse[None]]:
        """Delete a test user. Skipped (returns None) without id or token; never raises."""
        if not user_id or not token:
            logger.debug("Skipping user cleanup: id or token missing")
            return None

        try:
            response, payload = await self._graphql(
                "auth-service", DELETE_USER_MUTATION, {"id": user_id}, token=token
            )
        except GraphQLTransportError as exc:
            logger.warning(f"Failed to cleanup user {user_id}: {exc}")
            return ApiResponse.fail(str(exc), TRANSPORT_FAILURE_STATUS)
        except Exception as exc:
            logger.warning(f"Failed to cleanup user {user_id}: {exc}")
            return ApiResponse.fail(str(exc) or exc.__class__.__name__, TRANSPORT_FAILURE_STATUS)

        deleted = self._field(payload, "deleteUser")
        if response.is_success and isinstance(deleted, dict) and deleted.get("success"):
            return ApiResponse.ok(None, response.status_code)

        error = self._first_error(payload, "Failed to delete user")
        logger.warning(f"Failed to cleanup user {user_id}: {error} (status={response.status_code})")
        return ApiResponse.fail(error, response.status_code)

    async def cleanup_test_user(self, user: TestUser) -> Optional[ApiResponse[None]]:
        return await self.cleanup_user(user.id, user.token)

    # ---- learning data ----------------------------------------------------------------
    async def get_user_progress(self, user_id: str, token: str) -> ApiResponse[Dict[str, Any]]:
        try:
            response, payload = await self._graphql(
                "user-service", USER_PROGRESS_QUERY, {"userId": user_id}, token=token
            )
        except GraphQLTransportError as exc:
            return ApiResponse.fail(str(exc), TRANSPORT_FAILURE_STATUS)

        if response.is_success and not payload.get("errors"):
            return ApiResponse.ok(self._field(payload, "userProgress"), response.status_code)
        return ApiResponse.fail(
            self._first_error(payload, "Failed to fetch user progress"), response.status_code
        )

    async def submit_question_feedback(
        self,
        question_id: str,
        feedback: str,
        token: str,
    ) -> ApiResponse[Dict[str, Any]]:
        if feedback not in FEEDBACK_TYPES:
            raise ValueError(f"feedback must be one of {FEEDBACK_TYPES}, got {feedback!r}")

        variables = {"input": {"questionId": question_id, "type": feedback}}
        try:
            response, payload = await self._graphql(
                "feedback-service", SUBMIT_FEEDBACK_MUTATION, variables, token=token
            )
        except GraphQLTransportError as exc:
            return ApiResponse.fail(str(exc), TRANSPORT_FAILURE_STATUS)

        submitted = self._field(payload, "submitFeedback") or {}
        if response.is_success and submitted.get("success"):
            return ApiResponse.ok(submitted, response.status_code)
        return ApiResponse.fail(
            self._first_error(payload, "Failed to submit feedback"),
            response.status_code,
            data=submitted or None,
        )
