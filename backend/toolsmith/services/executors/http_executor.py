"""HTTP tool executor for API requests."""

from __future__ import annotations

import base64
import re
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, quote_plus, urlencode

import httpx

from toolsmith.core.config import settings
from toolsmith.core.exceptions import ExecutionTimeoutError
from toolsmith.core.logging import get_logger
from toolsmith.models.enums import AuthType, ExecutorKind
from toolsmith.schemas.execution import (
    ExecutionOutcome,
    HttpRequestSnapshot,
    HttpResponseSnapshot,
)
from toolsmith.services.executors.base import (
    ExecutionResult,
    ToolExecutor,
    elapsed_ms,
    run_with_deadline,
)
from toolsmith.services.executors.binding import ParameterBinder
from toolsmith.utils.crypto import redact

if TYPE_CHECKING:
    from collections.abc import Mapping

    from toolsmith.schemas.tool import AuthSpec, ToolDescriptor
    from toolsmith.services.secret_service import SecretResolver

logger = get_logger(__name__)

_RESPONSE_PATH_ROOT = re.compile(r"^\$\.?")


def extract_response_path(data: Any, path: str) -> Any:
    """Walk a dot path such as ``$.data.items.0.name`` into parsed JSON.

    Mappings descend by key and lists by numeric key; a missing key gives
    None. Walking stops at None or at any other scalar, which is returned
    unchanged.

    Example:
        >>> extract_response_path({"data": {"temp": 21}}, "$.data.temp")
        21
    """
    result = data
    for key in _RESPONSE_PATH_ROOT.sub("", path).split("."):
        if not key:
            continue
        if isinstance(result, dict):
            result = result.get(key)
        elif isinstance(result, list):
            result = result[int(key)] if key.isdigit() and int(key) < len(result) else None
        else:
            return result
    return result


class HttpToolExecutor(ToolExecutor):
    """Executor for HTTP-type tools."""

    kind = ExecutorKind.HTTP.value

    # Methods that carry a request body
    BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        default_timeout_ms: int | None = None,
    ) -> None:
        """Initialize HTTP executor.

        Args:
            client: Shared client to issue requests with. When omitted the
                executor creates (and later closes) its own.
            default_timeout_ms: Timeout for tools that do not set one.
        """
        self._client = client
        self._owns_client = client is None
        self.default_timeout_ms = default_timeout_ms or settings.HTTP_DEFAULT_TIMEOUT_MS

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
            )
        return self._client

    async def run(
        self,
        tool: ToolDescriptor,
        params: Mapping[str, Any],
        secrets: SecretResolver,
    ) -> ExecutionResult:
        """Execute HTTP request."""
        config = tool.http_config
        timeout_ms = config.timeout or self.default_timeout_ms
        method = str(config.method)
        start_time = time.perf_counter()

        # Raw templates stand in until the request is fully built
        request_snapshot = HttpRequestSnapshot(
            method=method,
            url=config.url,
            headers=dict(config.headers),
        )
        try:
            url, headers, body, request_snapshot = self._build_request(
                tool, params, secrets
            )
        except Exception as e:
            logger.warning(f"HTTP tool '{tool.name}' request could not be built: {e}")
            return self._failure(
                request_snapshot,
                elapsed_ms(start_time),
                f"Request could not be built: {type(e).__name__}: {e}",
            )

        try:
            client = await self._get_client()
            response = await run_with_deadline(
                client.request(
                    method,
                    url,
                    headers=headers,
                    content=body.encode("utf-8") if body is not None else None,
                    timeout=timeout_ms / 1000,
                ),
                timeout_ms,
            )
        except (ExecutionTimeoutError, httpx.TimeoutException):
            duration_ms = elapsed_ms(start_time)
            return self._failure(
                request_snapshot,
                duration_ms,
                f"Request timed out after {duration_ms}ms",
            )
        except Exception as e:
            duration_ms = elapsed_ms(start_time)
            return self._failure(
                request_snapshot,
                duration_ms,
                f"Request failed after {duration_ms}ms: {type(e).__name__}: {e}",
            )

        response_body = self._parse_body(response)
        duration_ms = elapsed_ms(start_time)
        response_snapshot = HttpResponseSnapshot(
            status=response.status_code,
            headers=dict(response.headers),
            body=response_body,
        )

        if not response.is_success:
            logger.debug(f"HTTP tool '{tool.name}' returned {response.status_code}")
            return ExecutionResult(
                outcome=ExecutionOutcome(
                    success=False,
                    duration_ms=duration_ms,
                    executor_type=ExecutorKind.HTTP,
                    request=request_snapshot,
                    response=response_snapshot,
                    error=f"HTTP {response.status_code}: {response.reason_phrase}",
                )
            )

        value = response_body
        if config.response_path and isinstance(response_body, dict | list):
            value = extract_response_path(response_body, config.response_path)

        return ExecutionResult(
            outcome=ExecutionOutcome(
                success=True,
                duration_ms=duration_ms,
                executor_type=ExecutorKind.HTTP,
                request=request_snapshot,
                response=response_snapshot,
            ),
            value=value,
        )

    def _build_request(
        self,
        tool: ToolDescriptor,
        params: Mapping[str, Any],
        secrets: SecretResolver,
    ) -> tuple[str, dict[str, str], str | None, HttpRequestSnapshot]:
        """Bind parameters and auth into URL, headers and body plus their redacted snapshot."""
        config = tool.http_config
        method = str(config.method)

        binder = ParameterBinder(tool.parameters, params)
        url = binder.build_url(config.url)
        headers = binder.interpolate_headers(config.headers)

        sensitive: list[str] = []
        url = self._apply_auth(tool.auth, headers, url, secrets, sensitive)

        body: str | None = None
        if config.body_template and method in self.BODY_METHODS:
            body = binder.interpolate_body(config.body_template)
            if not any(name.lower() == "content-type" for name in headers):
                headers["Content-Type"] = "application/json"

        snapshot = HttpRequestSnapshot(
            method=method,
            url=redact(url, sensitive),
            headers={name: redact(value, sensitive) for name, value in headers.items()},
            body=body,
        )
        return url, headers, body, snapshot

    def _apply_auth(
        self,
        auth: AuthSpec,
        headers: dict[str, str],
        url: str,
        secrets: SecretResolver,
        sensitive: list[str],
    ) -> str:
        """Apply authentication to request, returning the possibly extended URL.

        Every credential placed on the request is appended to ``sensitive``
        in each encoding it appears in.
        """

        def credential(reference: str) -> str:
            value = secrets.resolve(reference)
            return reference if value is None else value

        if auth.type == AuthType.API_KEY.value and auth.api_key is not None:
            key = credential(auth.api_key.key)
            sensitive.extend([key, quote(key, safe=""), quote_plus(key)])
            if auth.api_key.location == "header":
                headers[auth.api_key.param_name] = key
            else:
                separator = "&" if "?" in url else "?"
                url += separator + urlencode({auth.api_key.param_name: key})

        elif auth.type == AuthType.BEARER.value and auth.bearer is not None:
            token = credential(auth.bearer.token)
            sensitive.append(token)
            headers["Authorization"] = f"Bearer {token}"

        elif auth.type == AuthType.BASIC.value and auth.basic is not None:
            username = credential(auth.basic.username)
            password = credential(auth.basic.password)
            encoded = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
            sensitive.extend([password, encoded])
            if username != auth.basic.username:
                sensitive.append(username)
            headers["Authorization"] = f"Basic {encoded}"

        return url

    def _parse_body(self, response: httpx.Response) -> Any:
        """Parse a response body as JSON, falling back to raw text."""
        try:
            return response.json()
        except ValueError:
            return response.text

    def _failure(
        self,
        request_snapshot: HttpRequestSnapshot,
        duration_ms: int,
        error: str,
    ) -> ExecutionResult:
        """Outcome for a request that reached no server."""
        return ExecutionResult(
            outcome=ExecutionOutcome(
                success=False,
                duration_ms=duration_ms,
                executor_type=ExecutorKind.HTTP,
                request=request_snapshot,
                response=HttpResponseSnapshot(status=0, headers={}, body=None),
                error=error,
            )
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this executor created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpToolExecutor:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with cleanup."""
        await self.aclose()


__all__ = ["HttpToolExecutor", "extract_response_path"]
