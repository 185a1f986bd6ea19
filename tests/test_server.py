import pytest
from fastapi.testclient import TestClient

from conftest import FakeGenerator, FakeRepository, make_event, make_thread
from pr_review_agent.errors import UpstreamFetchFailed, UpstreamPublishFailed
from pr_review_agent.server import create_app, verify_function_key

URL = "/api/pullRequestTrigger"


def make_client(settings, repo=None, gen=None):
    repo = repo or FakeRepository()
    gen = gen or FakeGenerator()
    app = create_app(settings, repository_factory=lambda s: repo, generator_factory=lambda s: gen)
    return TestClient(app), repo, gen


class TestWebhook:
    def test_ignored_event(self, settings):
        client, repo, _ = make_client(settings)
        resp = client.post(URL, json=make_event("git.push"))

        assert resp.status_code == 200
        assert resp.text == "Event ignored - not a pull request creation event"
        assert repo.network_calls == []

    def test_completed(self, settings):
        client, repo, _ = make_client(settings)
        resp = client.post(URL, json=make_event())

        assert resp.status_code == 200
        assert resp.text == "Code review completed and added as a comment"
        assert len(repo.posted) == 1
        assert repo.calls[-1] == "close"

    def test_skipped_has_comments(self, settings):
        client, repo, _ = make_client(settings, repo=FakeRepository(threads=[make_thread("text")]))
        resp = client.post(URL, json=make_event())

        assert resp.status_code == 200
        assert resp.text == "Pull request already has text comments, skipping code review"
        assert repo.posted == []

    def test_skipped_empty_review(self, settings):
        client, repo, _ = make_client(settings, gen=FakeGenerator(review=""))
        resp = client.post(URL, json=make_event())

        assert resp.status_code == 200
        assert repo.posted == []

    def test_invalid_json(self, settings):
        client, _, _ = make_client(settings)
        resp = client.post(URL, content=b"{not json", headers={"Content-Type": "application/json"})

        assert resp.status_code == 500
        assert resp.text.startswith("Error processing pull request:")

    def test_invalid_payload(self, settings):
        client, _, _ = make_client(settings)
        resp = client.post(URL, json={"eventType": "git.pullrequest.created", "resource": {}})

        assert resp.status_code == 500
        assert "Invalid pull request payload" in resp.text

    def test_fetch_failure(self, settings):
        repo = FakeRepository(fetch_error=UpstreamFetchFailed("GET pull request returned 401", status_code=401))
        client, _, _ = make_client(settings, repo=repo)
        resp = client.post(URL, json=make_event())

        assert resp.status_code == 500
        assert resp.text == "Error processing pull request: GET pull request returned 401"

    def test_error_message_with_brackets(self, settings):
        repo = FakeRepository(fetch_error=UpstreamFetchFailed("GET [/x] returned 404", status_code=404))
        client, _, _ = make_client(settings, repo=repo)
        resp = client.post(URL, json=make_event())

        assert resp.status_code == 500
        assert resp.text == "Error processing pull request: GET [/x] returned 404"

    def test_publish_failure(self, settings):
        repo = FakeRepository(publish_error=UpstreamPublishFailed("POST threads returned 403", status_code=403))
        client, _, _ = make_client(settings, repo=repo)
        resp = client.post(URL, json=make_event())

        assert resp.status_code == 500
        assert "403" in resp.text


class TestFunctionKey:
    def test_no_secret_configured(self):
        assert verify_function_key("", None)

    def test_matches(self):
        assert verify_function_key("s3cret", "s3cret")
        assert not verify_function_key("wrong", "s3cret")

    @pytest.fixture
    def secured(self, settings):
        settings.webhook_secret = "s3cret"
        client, repo, _ = make_client(settings)
        return client, repo

    def test_rejects_missing_key(self, secured):
        client, repo = secured
        resp = client.post(URL, json=make_event())
        assert resp.status_code == 401
        assert repo.calls == []

    def test_header(self, secured):
        client, _ = secured
        resp = client.post(URL, json=make_event(), headers={"x-functions-key": "s3cret"})
        assert resp.status_code == 200

    def test_query_param(self, secured):
        client, _ = secured
        resp = client.post(f"{URL}?code=s3cret", json=make_event())
        assert resp.status_code == 200


def test_health(settings):
    client, _, _ = make_client(settings)
    assert client.get("/health").json() == {"status": "healthy"}
