"""
Base JSON client with a bounded retry loop for the external APIs.

Every domain client (inventory, region, address) talks to its upstream
through ResilientJSONClient, so all of them share one retry policy and one
decoding path.
"""

import asyncio
import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from integrations.config import ServiceEndpointConfig
from integrations.errors import (
    InputValidationError,
    ResponseDecodeError,
    UnexpectedStatusError,
    UpstreamRejectedError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

CONTENT_TYPE_JSON = "application/json"
USER_AGENT = "form-integrations/1.0"


class ResilientJSONClient:
    """
    JSON-over-HTTP client for one external service.

    Features:
    - 1 + max_retries attempts with a fixed delay before each retry
    - 4xx responses end the loop at once (the request itself is wrong)
    - Transport errors, 5xx and undecodable bodies are retried
    - Optional per-call deadline covering the whole retry loop
    - Pluggable httpx transport and logger

    The client keeps no per-call state, so one instance can serve many
    concurrent callers. Only read-style endpoints may be sent through it:
    POST bodies are replayed on retry without an idempotency key.
    """

    def __init__(
        self,
        config: ServiceEndpointConfig,
        service_name: str,
        transport: httpx.AsyncBaseTransport | None = None,
        log: logging.Logger | None = None,
    ):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.service_name = service_name
        self.timeout = config.timeout
        self.max_retries = config.max_retries
        self.retry_delay = config.retry_delay
        self.logger = log or logger
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Accept": CONTENT_TYPE_JSON, "User-Agent": USER_AGENT},
        )

    async def send(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        *,
        response_model: type[ModelT] | None = None,
        deadline: float | None = None,
    ) -> Any:
        """
        Send a request and decode the JSON response.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Path relative to the base URL
            body: JSON-serializable payload or pydantic model; None sends no body
            response_model: Pydantic model to validate the body against
            deadline: Seconds allowed for the whole call, retries included

        Returns:
            The decoded body: a response_model instance, or plain JSON data

        Raises:
            InputValidationError: If the body cannot be serialized
            UpstreamRejectedError: On a 4xx response
            UpstreamUnavailableError: When every attempt failed
            UpstreamTimeoutError: When the deadline elapsed
        """
        headers: dict[str, str] = {}
        content: bytes | None = None
        if body is not None:
            content = self._encode(body, endpoint)
            headers["Content-Type"] = CONTENT_TYPE_JSON

        try:
            async with asyncio.timeout(deadline) as scope:
                return await self._send_with_retries(method, endpoint, content, headers, response_model)
        except TimeoutError as e:
            if not scope.expired():
                raise
            self.logger.error(
                "%s call to %s exceeded deadline of %.1fs",
                self.service_name,
                endpoint,
                deadline,
                extra={"service": self.service_name, "endpoint": endpoint},
            )
            raise UpstreamTimeoutError(
                f"{self.service_name} call to {endpoint} exceeded deadline of {deadline}s",
                endpoint=endpoint,
                max_retries=self.max_retries,
                service=self.service_name,
            ) from e

    async def post_json(self, endpoint: str, body: Any, **kwargs) -> Any:
        """Send a POST request with a JSON body."""
        return await self.send("POST", endpoint, body, **kwargs)

    async def get_json(self, endpoint: str, **kwargs) -> Any:
        """Send a GET request."""
        return await self.send("GET", endpoint, None, **kwargs)

    async def _send_with_retries(
        self,
        method: str,
        endpoint: str,
        content: bytes | None,
        headers: dict[str, str],
        response_model: type[ModelT] | None,
    ) -> Any:
        last_error: Exception | None = None
        attempts = 0

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                await asyncio.sleep(self.retry_delay)
            attempts = attempt + 1
            extra = {
                "service": self.service_name,
                "endpoint": endpoint,
                "method": method,
                "attempt": attempts,
            }

            try:
                response = await self._client.request(method, endpoint, content=content, headers=headers)
                result = self._decode(response, endpoint, response_model)
            except (httpx.RequestError, OSError) as e:
                # OSError covers TimeoutError and socket errors from non-httpx transports
                last_error = e
                self.logger.warning(
                    "%s request to %s failed (attempt %d/%d): %s",
                    self.service_name,
                    endpoint,
                    attempts,
                    self.max_retries + 1,
                    e,
                    extra=extra,
                )
                continue
            except UnexpectedStatusError as e:
                last_error = e
                self.logger.warning(
                    "%s request to %s returned %d (attempt %d/%d)",
                    self.service_name,
                    endpoint,
                    e.status_code,
                    attempts,
                    self.max_retries + 1,
                    extra={**extra, "status_code": e.status_code},
                )
                if 400 <= e.status_code < 500:
                    self.logger.error(
                        "%s rejected request to %s with %d; not retrying",
                        self.service_name,
                        endpoint,
                        e.status_code,
                        extra={**extra, "status_code": e.status_code},
                    )
                    raise UpstreamRejectedError(e.status_code, endpoint=endpoint, service=self.service_name) from e
                continue
            except ResponseDecodeError as e:
                last_error = e
                self.logger.warning(
                    "%s response from %s could not be decoded (attempt %d/%d): %s",
                    self.service_name,
                    endpoint,
                    attempts,
                    self.max_retries + 1,
                    e,
                    extra=extra,
                )
                continue

            self.logger.debug(
                "%s request to %s succeeded (attempt %d)", self.service_name, endpoint, attempts, extra=extra
            )
            self.logger.debug(
                "%s call to %s completed after %d attempt(s)",
                self.service_name,
                endpoint,
                attempts,
                extra={"service": self.service_name, "endpoint": endpoint},
            )
            return result

        self.logger.error(
            "%s call to %s failed after %d retries: %s",
            self.service_name,
            endpoint,
            self.max_retries,
            last_error,
            extra={"service": self.service_name, "endpoint": endpoint, "max_retries": self.max_retries},
        )
        raise UpstreamUnavailableError(
            f"{self.service_name} call to {endpoint} failed after {self.max_retries} retries: {last_error}",
            endpoint=endpoint,
            max_retries=self.max_retries,
            attempts=attempts,
            service=self.service_name,
        ) from last_error

    def _encode(self, body: Any, endpoint: str) -> bytes:
        if isinstance(body, BaseModel):
            return body.model_dump_json(exclude_none=True).encode("utf-8")
        try:
            return json.dumps(body, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            self.logger.error(
                "Failed to serialize request body for %s: %s",
                endpoint,
                e,
                extra={"service": self.service_name, "endpoint": endpoint},
            )
            raise InputValidationError(f"request body is not JSON serializable: {e}", field="body") from e

    def _decode(
        self,
        response: httpx.Response,
        endpoint: str,
        response_model: type[ModelT] | None,
    ) -> Any:
        if not response.is_success:
            raise UnexpectedStatusError(response.status_code, endpoint=endpoint, service=self.service_name)

        try:
            payload = response.json()
        except ValueError as e:
            raise ResponseDecodeError(
                f"failed to decode response: {e}", endpoint=endpoint, service=self.service_name
            ) from e

        if response_model is None:
            return payload
        try:
            return response_model.model_validate(payload)
        except ValidationError as e:
            raise ResponseDecodeError(
                f"response does not match {response_model.__name__}: {e.error_count()} error(s)",
                endpoint=endpoint,
                service=self.service_name,
            ) from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ResilientJSONClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
