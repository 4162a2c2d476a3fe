"""Proxy to the remote code execution service (Piston API).

The service is sent ``{language, version, files: [{content}], stdin}`` and
answers with a ``run`` object. Whatever goes wrong on the way is turned
into a ``CodeResponse`` with the failure message as output, so callers
always get something they can relay.
"""

import logging

import httpx

from livecode.exceptions import ExecutionError
from livecode.socket_events import CodeResponse, CompileCode, RunOutput

log = logging.getLogger(__name__)

# Piston needs an explicit version; "*" selects the newest installed runtime.
LANGUAGE_VERSIONS: dict[str, str] = {
    "javascript": "18.15.0",
    "typescript": "5.0.3",
    "python": "3.10.0",
    "java": "15.0.2",
    "c": "10.2.0",
    "cpp": "10.2.0",
    "csharp": "6.12.0",
    "go": "1.16.2",
    "rust": "1.68.2",
    "php": "8.2.3",
    "ruby": "3.0.1",
}


def language_version(language: str) -> str:
    return LANGUAGE_VERSIONS.get(language.lower(), "*")


class ExecutionProxy:
    """One-shot forwarding of run requests, no retries.

    Parameters
    ----------
    url : str
        Execution endpoint.
    timeout : float
        Request timeout in seconds.
    client : httpx.AsyncClient, optional
        Client to use. When omitted the proxy creates and owns one.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def execute(self, request: CompileCode) -> CodeResponse:
        """Run ``request`` remotely. Never raises."""
        version = language_version(request.language)
        try:
            run = await self._post(request, version)
        except ExecutionError as e:
            log.warning(f"Execution of {request.language} code failed: {e}")
            message = f"Execution failed: {e}"
            return CodeResponse(
                run=RunOutput(stderr=message, output=message),
                language=request.language,
                version=version,
                error=str(e),
            )
        return CodeResponse(run=run, language=request.language, version=version)

    async def _post(self, request: CompileCode, version: str) -> RunOutput:
        payload = {
            "language": request.language,
            "version": version,
            "files": [{"content": request.code}],
            "stdin": request.stdin,
        }
        try:
            response = await self.client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise ExecutionError(
                f"service returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ExecutionError(f"could not reach execution service ({e!r})") from e
        except ValueError as e:
            raise ExecutionError("service returned a malformed response") from e

        run = body.get("run") if isinstance(body, dict) else None
        if not isinstance(run, dict):
            message = body.get("message") if isinstance(body, dict) else None
            raise ExecutionError(message or "service response has no run result")

        exit_code = run.get("code")
        return RunOutput(
            stdout=str(run.get("stdout") or ""),
            stderr=str(run.get("stderr") or ""),
            output=str(run.get("output") or ""),
            code=exit_code if isinstance(exit_code, int) else None,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
