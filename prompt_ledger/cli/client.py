"""API client for the Prompt Ledger REST API."""

from __future__ import annotations

from typing import Any

import httpx


class LedgerClient:
    """HTTP client wrapping the Prompt Ledger API endpoints."""

    def __init__(self, base_url: str = "http://localhost:8400", timeout: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=f"{self.base_url}/api/v1", timeout=timeout)

    def _handle(self, resp: httpx.Response) -> Any:
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            if isinstance(detail, dict):
                detail = detail.get("message", detail)
            raise RuntimeError(f"API error ({resp.status_code}): {detail}")
        if resp.status_code == 204:
            return None
        return resp.json()

    # --- Prompts ---

    def list_prompts(self, **params: Any) -> list[dict]:
        return self._handle(self._client.get("/prompts", params=params))

    def create_prompt(self, data: dict) -> dict:
        return self._handle(self._client.post("/prompts", json=data))

    def get_prompt(self, prompt_id: str) -> dict:
        return self._handle(self._client.get(f"/prompts/{prompt_id}"))

    def update_prompt(self, prompt_id: str, data: dict) -> dict:
        return self._handle(self._client.put(f"/prompts/{prompt_id}", json=data))

    def delete_prompt(self, prompt_id: str) -> None:
        self._handle(self._client.delete(f"/prompts/{prompt_id}"))

    # --- Versions ---

    def list_versions(self, prompt_id: str) -> list[dict]:
        return self._handle(self._client.get(f"/prompts/{prompt_id}/versions"))

    def rollback(self, prompt_id: str, version_id: str, note: str | None = None) -> dict:
        return self._handle(self._client.post(
            f"/prompts/{prompt_id}/rollback",
            json={"version_id": version_id, "note": note},
        ))

    def version_stats(self, prompt_id: str) -> dict:
        return self._handle(self._client.get(f"/prompts/{prompt_id}/versions/stats"))

    def compare(self, version_id_1: str, version_id_2: str, **params: Any) -> dict:
        return self._handle(self._client.get(
            f"/versions/{version_id_1}/compare/{version_id_2}",
            params=params,
        ))
