"""Tests for prompt API endpoints."""


class TestPromptAPI:
    def _create(self, client, title="Reviewer", content="hello", **extra):
        resp = client.post("/api/v1/prompts", json={"title": title, "content": content, **extra})
        assert resp.status_code == 201
        return resp.json()

    def test_create_prompt(self, client, sample_content):
        resp = client.post("/api/v1/prompts", json={
            "title": "Reviewer", "content": sample_content, "tags": ["review"],
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["title"] == "Reviewer"
        assert data["content"] == sample_content
        assert data["version_count"] == 1
        assert data["tags"] == ["review"]
        assert data["current_version_id"]

    def test_create_missing_content(self, client):
        resp = client.post("/api/v1/prompts", json={"title": "T"})
        assert resp.status_code == 422

    def test_create_blank_title(self, client):
        resp = client.post("/api/v1/prompts", json={"title": "   ", "content": "x"})
        assert resp.status_code == 422
        assert resp.json()["detail"]["error"] == "validation_error"

    def test_list_prompts(self, client):
        self._create(client, "A")
        self._create(client, "B")
        resp = client.get("/api/v1/prompts")
        assert resp.status_code == 200
        assert len(resp.json()) == 2

    def test_list_filter_tag(self, client):
        self._create(client, "A", tags=["review"])
        self._create(client, "B", tags=["chat"])
        resp = client.get("/api/v1/prompts", params={"tag": "chat"})
        assert [p["title"] for p in resp.json()] == ["B"]

    def test_list_paging(self, client):
        for n in range(3):
            self._create(client, f"P{n}")
        resp = client.get("/api/v1/prompts", params={"limit": 2, "offset": 0})
        assert len(resp.json()) == 2
        assert client.get("/api/v1/prompts", params={"limit": 0}).status_code == 422

    def test_get_prompt(self, client):
        created = self._create(client)
        resp = client.get(f"/api/v1/prompts/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["id"] == created["id"]

    def test_get_not_found(self, client):
        resp = client.get("/api/v1/prompts/nonexistent")
        assert resp.status_code == 404
        detail = resp.json()["detail"]
        assert detail["error"] == "not_found"
        assert "nonexistent" in detail["message"]

    def test_update_content(self, client):
        created = self._create(client, content="hello")
        resp = client.put(f"/api/v1/prompts/{created['id']}", json={
            "content": "hello world", "note": "expanded",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["version_count"] == 2
        assert data["content"] == "hello world"
        assert data["current_version_id"] != created["current_version_id"]

    def test_update_title_only(self, client):
        created = self._create(client)
        resp = client.put(f"/api/v1/prompts/{created['id']}", json={"title": "Renamed"})
        assert resp.status_code == 200
        assert resp.json()["title"] == "Renamed"
        assert resp.json()["version_count"] == 1

    def test_update_not_found(self, client):
        resp = client.put("/api/v1/prompts/nonexistent", json={"content": "x"})
        assert resp.status_code == 404

    def test_delete_prompt(self, client):
        created = self._create(client)
        resp = client.delete(f"/api/v1/prompts/{created['id']}")
        assert resp.status_code == 204
        assert client.get(f"/api/v1/prompts/{created['id']}").status_code == 404
        assert client.get(f"/api/v1/prompts/{created['id']}/versions").status_code == 404

    def test_delete_not_found(self, client):
        assert client.delete("/api/v1/prompts/nonexistent").status_code == 404

    def test_stats(self, client):
        created = self._create(client)
        client.put(f"/api/v1/prompts/{created['id']}", json={"content": "changed"})
        resp = client.get("/api/v1/prompts/stats")
        assert resp.status_code == 200
        assert resp.json() == {
            "total_prompts": 1,
            "total_versions": 2,
            "average_versions_per_prompt": 2.0,
        }


class TestServiceEndpoints:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["service"] == "prompt-ledger"
