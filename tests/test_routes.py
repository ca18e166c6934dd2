"""
HTTP tests for the PageVault API routes.

Drives the FastAPI app through TestClient against a temporary data
directory. Covers response shapes, status codes, role checks and the
error body format.
"""

import json

from pagevault.config import reload_settings
from pagevault.vault import get_vault


def create_page(client, headers, page_id, **extra):
    response = client.post("/api/pages", json={"pageId": page_id, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response


def save_page(client, headers, page_id, content, save_as="live", expect=200):
    response = client.post(
        "/api/save",
        json={"pageId": page_id, "content": content, "saveAs": save_as},
        headers=headers,
    )
    assert response.status_code == expect, response.text
    return response


class TestHealth:

    def test_health_ok(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["localMode"] is True
        assert data["checks"]["data_dir"] is True
        assert data["checks"]["record_store"] is True
        assert data["checks"]["sentry"] is False
        assert "X-Request-ID" in response.headers


class TestAuthRoutes:

    def test_login_check_logout(self, client):
        response = client.post("/api/auth", json={"username": "LOCAL ", "password": "local"})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["role"] == "admin"
        assert 0 < data["expiresIn"] <= 12 * 3600
        headers = {"Authorization": f"Bearer {data['token']}"}

        check = client.get("/api/auth", headers=headers)
        assert check.status_code == 200
        assert check.json()["valid"] is True
        assert check.json()["username"] == "local"

        assert client.delete("/api/auth", headers=headers).json() == {"success": True}
        after = client.get("/api/auth", headers=headers)
        assert after.status_code == 401
        assert after.json() == {"error": "Invalid session"}

    def test_bad_credentials(self, client):
        response = client.post("/api/auth", json={"username": "local", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_missing_token(self, client):
        response = client.get("/api/auth")

        assert response.status_code == 401
        assert response.json() == {"error": "Login required"}


class TestPageRoutes:

    def test_create_and_get(self, client, admin_headers):
        response = client.post(
            "/api/pages",
            json={"pageId": "Menu Page", "template": "menu-page", "title": "Menu"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["pageId"] == "menupage"
        assert data["schema"]["title"] == "Menu"
        assert data["content"]["_meta"]["status"] == "draft"

        page = client.get("/api/pages/menupage")
        assert page.status_code == 200
        assert set(page.json()) == {"pageId", "schema", "content"}

    def test_create_errors(self, client, admin_headers):
        create_page(client, admin_headers, "faq")

        duplicate = client.post("/api/pages", json={"pageId": "faq"}, headers=admin_headers)
        assert duplicate.status_code == 409
        assert duplicate.json() == {"error": 'Page "faq" already exists'}

        empty = client.post("/api/pages", json={"pageId": "***"}, headers=admin_headers)
        assert empty.status_code == 400
        assert empty.json() == {"error": "pageId is required"}

        unknown = client.post(
            "/api/pages", json={"pageId": "x", "template": "nope"}, headers=admin_headers
        )
        assert unknown.status_code == 400

    def test_contributor_cannot_create(self, client, make_user):
        headers = make_user("writer", "contributor")

        response = client.post("/api/pages", json={"pageId": "mine"}, headers=headers)

        assert response.status_code == 403
        assert response.json() == {"error": "Permission denied"}

    def test_unknown_page(self, client):
        response = client.get("/api/pages/ghost")

        assert response.status_code == 404
        assert response.json() == {"error": 'Page "ghost" not found'}

    def test_listing(self, client, admin_headers):
        for page_id in ("alpha", "beta", "gamma"):
            create_page(client, admin_headers, page_id)

        full = client.get("/api/pages", headers=admin_headers).json()
        assert full["total"] == 3
        assert full["canEditAll"] is True
        assert full["pages"][0]["pageId"] == "alpha"
        assert full["pages"][0]["status"] == "draft"

        minimal = client.get("/api/pages?minimal=true&limit=2&page=2").json()
        assert minimal["pages"] == [{"pageId": "gamma", "title": "gamma"}]
        assert minimal["hasMore"] is False
        assert minimal["canEditAll"] is False


class TestContentRoutes:

    def test_save_and_publish(self, client, admin_headers):
        create_page(client, admin_headers, "menu")

        saved = save_page(client, admin_headers, "menu", {"title": "Lunch"})
        assert saved.json() == {"success": True, "modifiedBy": "local"}

        published = client.post("/api/publish", json={"pageId": "menu"}, headers=admin_headers)
        assert published.json() == {"success": True, "status": "published"}

        save_page(client, admin_headers, "menu", {"title": "Lunch"}, save_as="draft")
        meta = client.get("/api/pages/menu").json()["content"]["_meta"]
        assert meta["status"] == "draft"
        assert meta["workflowStatus"] == "draft"

    def test_save_requires_login(self, client):
        response = client.post("/api/save", json={"pageId": "menu", "content": {}})

        assert response.status_code == 401

    def test_contributor_save_rules(self, client, admin_headers, make_user):
        headers = make_user("writer", "contributor")
        create_page(client, admin_headers, "shared")

        denied = save_page(client, headers, "shared", {"x": 1}, expect=403)
        assert denied.json() == {"error": "You can only edit pages you created"}

        save_page(client, headers, "mine", {"x": 1})
        listing = client.get("/api/pages", headers=headers).json()
        assert [p["pageId"] for p in listing["pages"]] == ["mine"]

        publish = client.post("/api/publish", json={"pageId": "mine"}, headers=headers)
        assert publish.status_code == 403

    def test_workflow(self, client, admin_headers):
        create_page(client, admin_headers, "event")

        missing_time = client.post(
            "/api/workflow", json={"pageId": "event", "status": "scheduled"}, headers=admin_headers
        )
        assert missing_time.status_code == 400

        scheduled = client.post(
            "/api/workflow",
            json={"pageId": "event", "status": "scheduled", "scheduledFor": "2020-01-01T00:00:00Z"},
            headers=admin_headers,
        )
        assert scheduled.json() == {
            "success": True,
            "workflowStatus": "scheduled",
            "scheduledFor": "2020-01-01T00:00:00.000Z",
        }

        sweep = client.post("/api/scheduled-publish", headers=admin_headers).json()
        assert sweep["checked"] == 1
        assert [p["pageId"] for p in sweep["published"]] == ["event"]
        assert sweep["skipped"] == []

        meta = client.get("/api/pages/event").json()["content"]["_meta"]
        assert meta["status"] == "published"

    def test_bulk_publish(self, client, admin_headers):
        create_page(client, admin_headers, "a")
        create_page(client, admin_headers, "b")

        response = client.post(
            "/api/bulk-publish",
            json={"pageIds": ["a", "missing", "b"], "action": "publish"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["action"] == "publish"
        assert data["dryRun"] is False
        assert data["results"] == [
            {"pageId": "a", "ok": True},
            {"pageId": "missing", "ok": False, "error": "Content not found"},
            {"pageId": "b", "ok": True},
        ]

    def test_delete_content(self, client, admin_headers):
        create_page(client, admin_headers, "faq")
        save_page(client, admin_headers, "faq", {"q": "x"})

        response = client.request(
            "DELETE", "/api/content", json={"pageId": "faq"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        history = client.get("/api/history?pageId=faq", headers=admin_headers).json()["history"]
        assert history[0]["id"] == response.json()["commit"]
        assert history[0]["message"] == "Deleted content"

        missing = client.request(
            "DELETE", "/api/content", json={"pageId": "ghost"}, headers=admin_headers
        )
        assert missing.status_code == 404


class TestHistoryRoutes:

    def test_history_diff_rollback(self, client, admin_headers):
        create_page(client, admin_headers, "faq")
        save_page(client, admin_headers, "faq", {"q": "first"})
        save_page(client, admin_headers, "faq", {"q": "second"})

        history = client.get("/api/history?pageId=faq&limit=2", headers=admin_headers).json()["history"]
        assert len(history) == 2
        newest, older = history
        assert set(newest) >= {"id", "message", "author", "timestamp"}
        assert newest["author"] == "local"

        diff = client.get(
            f"/api/revision-diff?pageId=faq&from={older['id']}&to={newest['id']}",
            headers=admin_headers,
        ).json()
        assert diff["summary"]["added"] >= 1
        assert diff["summary"]["removed"] >= 1
        assert {"type": "add", "line": '  "q": "second",'} in diff["diff"]

        rollback = client.post(
            "/api/rollback", json={"pageId": "faq", "commitSha": older["id"]}, headers=admin_headers
        )
        assert rollback.status_code == 200
        assert client.get("/api/pages/faq").json()["content"]["q"] == "first"

    def test_diff_requires_params(self, client, admin_headers):
        response = client.get("/api/revision-diff?pageId=faq", headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "pageId, from, and to are required"}

    def test_unknown_revision(self, client, admin_headers):
        create_page(client, admin_headers, "faq")

        response = client.post(
            "/api/rollback", json={"pageId": "faq", "revisionId": "deadbeef"}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Revision not found"}


class TestWatchRoutes:

    def test_watch_and_recent_activity(self, client, admin_headers):
        create_page(client, admin_headers, "faq")

        added = client.post("/api/watch", json={"pageId": "FAQ"}, headers=admin_headers).json()
        assert added == {"success": True, "pageId": "faq", "watchedPages": ["faq"]}

        save_page(client, admin_headers, "faq", {"q": "x"})
        watch = client.get("/api/watch", headers=admin_headers).json()
        assert watch["watchedPages"] == ["faq"]
        assert watch["recent"][0]["action"] == "content_save"
        assert watch["recent"][0]["pageId"] == "faq"

        removed = client.request(
            "DELETE", "/api/watch", json={"pageId": "faq"}, headers=admin_headers
        ).json()
        assert removed["watchedPages"] == []

    def test_watch_requires_page_id(self, client, admin_headers):
        response = client.post("/api/watch", json={}, headers=admin_headers)

        assert response.status_code == 400


class TestAdminRoutes:

    def test_audit_admin_only(self, client, admin_headers, make_user):
        editor_headers = make_user("ed", "editor")

        denied = client.get("/api/audit", headers=editor_headers)
        assert denied.status_code == 403
        assert denied.json() == {"error": "Admin access required"}

        data = client.get("/api/audit?action=user_create", headers=admin_headers).json()
        assert data["filters"] == {"action": "user_create", "username": None}
        assert [log["details"]["username"] for log in data["logs"]] == ["ed"]
        assert data["total"] >= 2

    def test_user_crud(self, client, admin_headers):
        created = client.post(
            "/api/users", json={"username": "Bob", "role": "editor"}, headers=admin_headers
        )
        assert created.status_code == 201
        assert created.json()["username"] == "bob"
        assert len(created.json()["password"]) >= 12

        duplicate = client.post("/api/users", json={"username": "bob"}, headers=admin_headers)
        assert duplicate.status_code == 409

        users = client.get("/api/users", headers=admin_headers).json()
        assert users["total"] == 2
        assert all("password" not in u for u in users["users"])

        reset = client.patch(
            "/api/users", json={"username": "bob", "resetPassword": True}, headers=admin_headers
        ).json()
        assert reset["success"] is True
        assert reset["role"] == "editor"
        assert reset["newPassword"]

        demoted = client.patch(
            "/api/users", json={"username": "bob", "role": "contributor"}, headers=admin_headers
        ).json()
        assert demoted == {"success": True, "username": "bob", "role": "contributor"}

        deleted = client.request("DELETE", "/api/users", json={"username": "bob"}, headers=admin_headers)
        assert deleted.json() == {"success": True, "username": "bob"}

        self_delete = client.request(
            "DELETE", "/api/users", json={"username": "local"}, headers=admin_headers
        )
        assert self_delete.status_code == 400

    def test_invalid_role(self, client, admin_headers):
        response = client.post(
            "/api/users", json={"username": "eve", "role": "owner"}, headers=admin_headers
        )

        assert response.status_code == 400

    def test_sessions_listing_and_revoke(self, client, admin_headers, make_user):
        writer_headers = make_user("writer", "contributor")

        listing = client.get("/api/sessions", headers=admin_headers).json()
        assert listing["total"] == 2
        current = [s for s in listing["sessions"] if s["isCurrent"]]
        assert [s["username"] for s in current] == ["local"]
        assert all("token" not in s for s in listing["sessions"])

        revoked = client.request(
            "DELETE", "/api/sessions", json={"username": "writer"}, headers=admin_headers
        ).json()
        assert revoked == {"success": True, "revoked": "writer", "count": 1}
        assert client.get("/api/auth", headers=writer_headers).status_code == 401


class TestMiscRoutes:

    def test_templates(self, client):
        data = client.get("/api/templates").json()

        ids = [t["id"] for t in data["templates"]]
        assert data["total"] == len(ids) == 8
        assert "faq" in ids
        assert all(t["fieldCount"] > 0 for t in data["templates"])

    def test_upload_not_available(self, client):
        response = client.post("/api/upload")

        assert response.status_code == 501
        assert response.json() == {"error": "Uploads are not available in local mode."}

    def test_unknown_api_route(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Unknown API route"}

    def test_malformed_body(self, client, admin_headers):
        response = client.post(
            "/api/bulk-publish",
            json={"pageIds": ["a"], "dryRun": "definitely"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert "error" in response.json()


class TestSetupRoutes:

    def _enable_setup(self, monkeypatch, token="let-me-in"):
        monkeypatch.setenv("SETUP_TOKEN", token)
        reload_settings()

    def _drop_accounts(self):
        get_vault().store.users.clear()

    def test_status_with_bootstrap_admin(self, client):
        assert client.get("/api/setup").json() == {
            "setupRequired": False,
            "setupTokenConfigured": False,
        }

    def test_disabled_without_token(self, client):
        self._drop_accounts()

        response = client.post(
            "/api/setup",
            json={"setupToken": "x", "username": "owner", "password": "long-enough"},
        )

        assert response.status_code == 503
        assert response.json() == {"error": "Initial setup is disabled (SETUP_TOKEN not configured)"}

    def test_refused_once_an_admin_exists(self, client, monkeypatch):
        self._enable_setup(monkeypatch)

        response = client.post(
            "/api/setup",
            json={"setupToken": "let-me-in", "username": "owner", "password": "long-enough"},
        )

        assert response.status_code == 409
        assert response.json() == {"error": "Initial setup already completed"}

    def test_creates_admin_and_logs_in(self, client, monkeypatch):
        self._enable_setup(monkeypatch)
        self._drop_accounts()
        assert client.get("/api/setup").json()["setupRequired"] is True

        response = client.post(
            "/api/setup",
            json={"setupToken": "let-me-in", "username": " Owner ", "password": "long-enough"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Initial admin created successfully"
        assert data["username"] == "owner"
        assert data["role"] == "admin"
        check = client.get("/api/auth", headers={"Authorization": f"Bearer {data['token']}"})
        assert check.json()["username"] == "owner"
        assert client.get("/api/setup").json()["setupRequired"] is False

        entry = get_vault().audit.query(limit=1)[0]
        assert entry.action == "setup_admin_created"
        assert entry.username == "owner"

    def test_wrong_token(self, client, monkeypatch):
        self._enable_setup(monkeypatch)
        self._drop_accounts()

        response = client.post(
            "/api/setup",
            json={"setupToken": "guess", "username": "owner", "password": "long-enough"},
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Invalid setup token"}

    def test_rejects_short_password_and_bad_username(self, client, monkeypatch):
        self._enable_setup(monkeypatch)
        self._drop_accounts()

        short = client.post(
            "/api/setup",
            json={"setupToken": "let-me-in", "username": "owner", "password": "short"},
        )
        tiny_name = client.post(
            "/api/setup",
            json={"setupToken": "let-me-in", "username": "!!", "password": "long-enough"},
        )
        missing = client.post("/api/setup", json={"setupToken": "let-me-in"})

        assert short.status_code == 400
        assert short.json() == {"error": "Password must be at least 8 characters"}
        assert tiny_name.status_code == 400
        assert missing.status_code == 400
        assert missing.json() == {"error": "setupToken, username, and password are required"}


class TestBlockRoutes:

    def test_requires_session(self, client):
        assert client.get("/api/blocks").status_code == 401

    def test_default_blocks(self, client, admin_headers):
        data = client.get("/api/blocks", headers=admin_headers).json()

        assert data["source"] == "default"
        assert [b["id"] for b in data["blocks"]] == [
            "call_to_action",
            "contact_card",
            "two_column_note",
        ]

    def test_repository_blocks(self, client, admin_headers, settings):
        blocks_dir = settings.storage.data_path / "_blocks"
        blocks_dir.mkdir(parents=True, exist_ok=True)
        (blocks_dir / "blocks.json").write_text(json.dumps([
            {"id": "hours", "label": "Opening Hours", "content": "Mon-Fri 9-5"},
            {"id": "broken", "label": "No content"},
        ]))

        data = client.get("/api/blocks", headers=admin_headers).json()

        assert data == {
            "blocks": [{"id": "hours", "label": "Opening Hours", "content": "Mon-Fri 9-5"}],
            "source": "repository",
        }


class TestFeedbackRoutes:

    def test_submit_without_session(self, client, settings):
        response = client.post(
            "/api/feedback",
            json={"pageId": " FAQ ", "message": "  Typo in answer two  ", "email": "a@b.co"},
            headers={"User-Agent": "pytest"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["id"].startswith("feedback_")

        stored = json.loads((settings.storage.state_path / "feedback.json").read_text())
        assert len(stored) == 1
        assert stored[0]["id"] == data["id"]
        assert stored[0]["pageId"] == "faq"
        assert stored[0]["message"] == "Typo in answer two"
        assert stored[0]["email"] == "a@b.co"

    def test_invalid_submissions(self, client):
        bad_page = client.post("/api/feedback", json={"pageId": "../etc", "message": "hi"})
        no_message = client.post("/api/feedback", json={"pageId": "faq", "message": "   "})
        bad_email = client.post(
            "/api/feedback", json={"pageId": "faq", "message": "hi", "email": "nope"}
        )

        assert bad_page.status_code == 400
        assert bad_page.json() == {"error": "Invalid pageId format"}
        assert no_message.json() == {"error": "Invalid or missing message"}
        assert bad_email.json() == {"error": "Invalid email format"}


class TestContentSizeLimit:

    def test_oversized_save_is_rejected(self, client, admin_headers):
        create_page(client, admin_headers, "big")

        response = save_page(
            client, admin_headers, "big", {"body": "x" * (1024 * 1024)}, expect=413
        )

        data = response.json()
        assert data["error"] == "Content exceeds 1MB limit"
        assert data["max"] == "1MB"
        assert data["suggestion"] == "Reduce content size or split into multiple pages"


class TestRateLimits:

    def test_login_attempts_are_capped(self, client, rate_limits):
        statuses = [
            client.post("/api/auth", json={"username": "local", "password": "wrong"}).status_code
            for _ in range(10)
        ]
        blocked = client.post("/api/auth", json={"username": "local", "password": "local"})

        assert statuses == [401] * 10
        assert blocked.status_code == 429
        assert blocked.json() == {"error": "Too many login attempts. Try again in 60 seconds."}
        assert int(blocked.headers["Retry-After"]) >= 1
        assert blocked.headers["X-RateLimit-Limit"] == "10"

    def test_feedback_is_capped(self, client, rate_limits):
        for n in range(10):
            response = client.post("/api/feedback", json={"pageId": "faq", "message": f"note {n}"})
            assert response.status_code == 200

        blocked = client.post("/api/feedback", json={"pageId": "faq", "message": "one more"})

        assert blocked.status_code == 429
        assert blocked.json() == {"error": "Too many feedback submissions. Try again later."}

    def test_disabled_by_default_in_tests(self, client):
        for _ in range(12):
            response = client.post("/api/auth", json={"username": "local", "password": "wrong"})
        assert response.status_code == 401
