"""HTTPS client for the hosted-browser execution service."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
from loguru import logger

from hostbrowser.config.schema import RemoteConfig
from hostbrowser.errors import ExecutionError, MissingCredentialError
from hostbrowser.program.steps import Program, load_shim, validate_program
from hostbrowser.program.templates import CapabilityCall
from hostbrowser.utils.redaction import SensitiveOutputRedactor

_MAX_UPSTREAM_BODY_CHARS = 2000
_BINARY_CAPABILITIES = ("screenshot", "pdf")


class RemoteExecutionClient:
    """Submit programs and capability calls to a Browserless-compatible host.

    One outbound request per call, no retries. Every failure surfaces as
    ``ExecutionError``.
    """

    def __init__(
        self,
        config: RemoteConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or RemoteConfig()
        token = (self.config.token or "").strip()
        if not token:
            raise MissingCredentialError(
                "remote host token not configured (set remote.token or BROWSERLESS_API_KEY)"
            )
        self._token = token
        self._endpoint = self.config.endpoint.rstrip("/")
        self._http_client = http_client
        self._redactor = SensitiveOutputRedactor(extra_secrets=[token])

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def submit(self, program: Program, timeout_ms: int | None = None) -> Any:
        """Run a program on the remote host and return its JSON return value."""
        validate_program(program)
        timeout = timeout_ms if timeout_ms is not None else self.config.function_timeout_ms
        body = {"code": load_shim(), "context": program.to_context()}
        logger.debug(
            "Submitting {} program ({} steps, {:.0f}ms scripted pauses)",
            program.kind,
            len(program.steps),
            program.total_sleep_ms(),
        )
        response = await self._post("function", body, timeout)
        return self._decode_json(response)

    async def capability(
        self,
        name: str,
        params: dict[str, Any],
        timeout_ms: int | None = None,
    ) -> bytes | Any:
        """Invoke a built-in capability such as ``screenshot``."""
        timeout = timeout_ms if timeout_ms is not None else self.config.capability_timeout_ms
        response = await self._post(name, params, timeout)
        if name in _BINARY_CAPABILITIES:
            return response.content
        return self._decode_json(response)

    async def call(self, call: CapabilityCall) -> bytes | Any:
        return await self.capability(call.name, call.params, call.timeout_ms)

    async def _post(self, path: str, body: dict[str, Any], timeout_ms: int) -> httpx.Response:
        url = f"{self._endpoint}/{path}"
        timeout_s = timeout_ms / 1000
        try:
            response = await asyncio.wait_for(
                self._send(url, body, timeout_s),
                timeout=timeout_s,
            )
            response.raise_for_status()
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error("Remote {} call timed out after {}ms", path, timeout_ms)
            raise ExecutionError(
                ExecutionError.TIMEOUT,
                f"remote {path} call timed out after {timeout_ms}ms",
            ) from e
        except httpx.HTTPStatusError as e:
            upstream = self._redact(e.response.text[:_MAX_UPSTREAM_BODY_CHARS])
            logger.error(
                "Remote {} call failed with HTTP {}: {}",
                path,
                e.response.status_code,
                upstream[:200],
            )
            raise ExecutionError(
                ExecutionError.HTTP_STATUS,
                f"remote {path} call failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
                upstream_body=upstream or None,
            ) from e
        except httpx.HTTPError as e:
            message = self._redact(str(e) or type(e).__name__)
            logger.error("Remote {} call failed: {}", path, message)
            raise ExecutionError(
                ExecutionError.TRANSPORT,
                f"remote {path} call failed: {message}",
            ) from e
        return response

    async def _send(self, url: str, body: dict[str, Any], timeout_s: float) -> httpx.Response:
        kwargs: dict[str, Any] = {
            "params": {"token": self._token},
            "json": body,
            "headers": {
                "Content-Type": "application/json",
                "Cache-Control": "no-cache",
            },
            "timeout": timeout_s,
        }
        if self._http_client is not None:
            return await self._http_client.post(url, **kwargs)
        async with httpx.AsyncClient() as client:
            return await client.post(url, **kwargs)

    def _decode_json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ExecutionError(
                ExecutionError.INVALID_RESPONSE,
                "remote host returned a non-JSON body",
                status_code=response.status_code,
                upstream_body=self._redact(response.text[:_MAX_UPSTREAM_BODY_CHARS]) or None,
            ) from e

    def _redact(self, text: str) -> str:
        return self._redactor.redact(text)
