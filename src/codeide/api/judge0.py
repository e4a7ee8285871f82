"""Client for the Judge0 batch execution API.

``POST /run`` is a thin pass-through: the submission is forwarded with
``wait=true`` so Judge0 answers with the finished result, and that result
is returned to the caller untouched.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx


class Judge0Client:
    """Submit source code to Judge0 and wait for the result."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        host: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.host = host
        self.timeout = timeout
        self._transport = transport

    @property
    def headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "X-RapidAPI-Key": self.api_key,
            "X-RapidAPI-Host": self.host,
        }

    async def submit(self, source_code: str, language_id: int, stdin: str = "") -> Any:
        """Run a submission synchronously on Judge0.

        Raises ``httpx.TimeoutException`` when Judge0 does not answer in
        time, ``httpx.HTTPStatusError`` for error responses and other
        ``httpx.HTTPError`` subclasses for transport failures.
        """
        payload = {"source_code": source_code, "language_id": language_id, "stdin": stdin}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/submissions",
                params={"base64_encoded": "false", "wait": "true"},
                json=payload,
                headers=self.headers,
            )
            response.raise_for_status()
            return response.json()


def error_details(response: httpx.Response) -> Any:
    """Best available description of an upstream error response."""
    try:
        return response.json()
    except ValueError:
        return response.text or response.reason_phrase
