"""Tests for the hookrelay HTTP endpoints."""

import json

from fastapi.testclient import TestClient

from hookrelay.main import create_app
from hookrelay.webhooks.handlers import WebhookJob
from hookrelay.webhooks.router import add_webhook_route
from hookrelay.webhooks.security import compute_signature, generate_webhook_headers

SECRET = "s3cret"


class NotifyJob(WebhookJob):
    seen = []

    def process(self, webhook):
        NotifyJob.seen.append(self.get("order_id"))


def register_user_webhook(manager):
    return (
        manager.create("user.created", SECRET)
        .user_webhook()
        .handle(lambda webhook: {"processed": True, "user_id": webhook.get("user_id")})
        .register()
    )


def test_root(client):
    """Test root endpoint returns service information."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data.get("status") == "ok"
    assert "webhook" in data.get("message", "")


def test_health(client):
    """Test health endpoint returns healthy status."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json().get("status") == "healthy"


class TestWebhookEndpoint:
    """Tests for POST /webhooks/{name}."""

    def test_signed_request_processed(self, client, manager):
        """Test a correctly signed request runs the handler."""
        register_user_webhook(manager)
        body = b'{"user_id":42}'

        response = client.post(
            "/webhooks/user.created",
            content=body,
            headers={"Content-Type": "application/json", "X-Signature-256": compute_signature(body, SECRET)},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["webhook"] == "user.created"
        assert data["result"] == {"processed": True, "user_id": 42}
        assert "processed_at" in data

    def test_unknown_webhook(self, client):
        """Test unregistered names return 404."""
        response = client.post("/webhooks/ghost.event", json={})

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "webhook_not_found",
            "message": "Webhook 'ghost.event' not found.",
        }

    def test_invalid_name_characters(self, client):
        """Test names outside the allowed character set are not found."""
        response = client.post("/webhooks/user%20created", json={})

        assert response.status_code == 404
        assert response.json()["error"] == "webhook_not_found"

    def test_tampered_signature(self, client, manager):
        """Test a modified signature is rejected with 400."""
        register_user_webhook(manager)
        body = b'{"user_id":42}'
        signature = compute_signature(body, SECRET)
        tampered = signature[:-1] + ("0" if signature[-1] != "0" else "1")

        response = client.post(
            "/webhooks/user.created",
            content=body,
            headers={"Content-Type": "application/json", "X-Signature-256": tampered},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_failed"

    def test_signature_header_case_insensitive(self, client, manager):
        """Test the signature header matches regardless of case."""
        register_user_webhook(manager)
        body = b'{"user_id":7}'

        response = client.post(
            "/webhooks/user.created",
            content=body,
            headers={"content-type": "application/json", "x-signature-256": compute_signature(body, SECRET)},
        )

        assert response.status_code == 200

    def test_malformed_json(self, client, manager):
        """Test malformed JSON returns invalid_payload."""
        register_user_webhook(manager)

        response = client.post(
            "/webhooks/user.created",
            content=b"{oops",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_payload"

    def test_form_payload(self, client, manager):
        """Test form-encoded bodies are merged with the query string."""
        manager.create("mailgun.event").handle(lambda webhook: webhook.get_payload()).register()

        response = client.post(
            "/webhooks/mailgun.event?domain=example.com",
            data={"event": "delivered", "recipient": "a@example.com"},
        )

        assert response.status_code == 200
        assert response.json()["result"] == {
            "domain": "example.com",
            "event": "delivered",
            "recipient": "a@example.com",
        }

    def test_handler_error_returns_500(self, client, manager):
        """Test handler failures return a generic internal error."""
        def explode(webhook):
            raise ValueError("secret detail")

        manager.create("boom").handle(explode).register()

        response = client.post("/webhooks/boom", json={})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "internal_error"
        assert "secret detail" not in data["message"]

    def test_unserializable_result(self, client, manager):
        """Test a result that cannot be encoded becomes an internal error."""
        manager.create("opaque").handle(lambda webhook: {"value": 1 + 2j}).register()

        response = client.post("/webhooks/opaque", json={})

        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"

    def test_job_runs_in_background(self, client, manager):
        """Test job handlers are queued and run after the response."""
        NotifyJob.seen.clear()
        manager.create("order.created").handle(NotifyJob).register()

        response = client.post("/webhooks/order.created", json={"order_id": "o-1"})

        assert response.status_code == 200
        assert response.json()["result"] == {"queued": True, "job": "NotifyJob"}
        assert NotifyJob.seen == ["o-1"]

    def test_generated_headers_accepted(self, client, manager):
        """Test headers from generate_webhook_headers pass verification."""
        register_user_webhook(manager)
        body = json.dumps({"user_id": 3}).encode()

        response = client.post(
            "/webhooks/user.created",
            content=body,
            headers=generate_webhook_headers(body, SECRET),
        )

        assert response.status_code == 200
        assert response.json()["result"]["user_id"] == 3


class TestWebhookListing:
    """Tests for GET /webhooks/."""

    def test_lists_registered_webhooks(self, client, manager):
        """Test the listing describes each webhook without its secret."""
        register_user_webhook(manager)

        response = client.get("/webhooks/")

        assert response.status_code == 200
        data = response.json()
        assert [item["name"] for item in data] == ["user.created"]
        assert data[0]["signed"] is True
        assert data[0]["properties"]["user_id"]["type"] == "integer"
        assert SECRET not in response.text


class TestCustomRoutes:
    """Tests for fixed webhook paths."""

    def test_add_webhook_route(self, manager):
        """Test a fixed path dispatches to its bound webhook."""
        (
            manager.create("github.push", SECRET)
            .github_webhook()
            .handle(lambda webhook: {"event": webhook.get_header("X-GitHub-Event")})
            .register()
        )
        app = create_app(manager)
        add_webhook_route(app.router, "/github", "github.push")
        body = b'{"ref":"refs/heads/main"}'

        with TestClient(app) as client:
            response = client.post(
                "/github",
                content=body,
                headers={
                    "Content-Type": "application/json",
                    "X-GitHub-Event": "push",
                    "X-Hub-Signature-256": compute_signature(body, SECRET),
                },
            )

        assert response.status_code == 200
        assert response.json()["result"] == {"event": "push"}

    def test_route_prefix_setting(self, manager):
        """Test the router is mounted at the configured prefix."""
        manager.set_config("route_prefix", "hooks/")
        manager.create("ping").handle(lambda webhook: "pong").register()

        with TestClient(create_app(manager)) as client:
            response = client.post("/hooks/ping", json={})

        assert response.status_code == 200
        assert response.json()["result"] == "pong"
