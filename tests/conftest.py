import pytest

from pr_review_agent.azure_devops.schemas import (
    ChangeType,
    Comment,
    CommentThread,
    FileChange,
    PullRequestRef,
)
from pr_review_agent.config import Settings


def make_event(event_type="git.pullrequest.created", pr_id=42, repo_id="repo-1", project_id="proj-1"):
    return {
        "eventType": event_type,
        "resource": {
            "pullRequestId": pr_id,
            "repository": {"id": repo_id, "project": {"id": project_id}},
        },
    }


def make_pr(pr_id=42, title="Fix off-by-one", description=None):
    return PullRequestRef(
        pull_request_id=pr_id,
        repository_id="repo-1",
        project_id="proj-1",
        title=title,
        description=description,
        source_branch="refs/heads/feature/fix",
        target_branch="refs/heads/main",
    )


def make_thread(*comment_types, deleted=False):
    return CommentThread(
        id=1,
        status="active",
        comments=[
            Comment(id=i, content=f"comment {i}", comment_type=t, is_deleted=deleted)
            for i, t in enumerate(comment_types, start=1)
        ],
    )


def code_file(path="a.ts", content="x++", change_type=ChangeType.EDIT):
    return FileChange(path=path, change_type=change_type, content=content, language="TypeScript", is_code=True)


def doc_file(path="b.md", content="# notes", change_type=ChangeType.ADD):
    return FileChange(path=path, change_type=change_type, content=content, language="Markdown", is_code=False)


class FakeRepository:
    def __init__(
        self, pr=None, threads=None, changes=None, fetch_error=None, threads_error=None, changes_error=None,
        publish_error=None,
    ):
        self.pr = pr or make_pr()
        self.threads = threads or []
        self.changes = changes if changes is not None else [code_file()]
        self.fetch_error = fetch_error
        self.threads_error = threads_error
        self.changes_error = changes_error
        self.publish_error = publish_error
        self.calls = []
        self.posted = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.calls.append("close")

    async def fetch_pull_request(self, pull_request_id, repository_id, project_id=None):
        self.calls.append(("fetch_pull_request", pull_request_id, repository_id, project_id))
        if self.fetch_error:
            raise self.fetch_error
        return self.pr

    async def fetch_comment_threads(self, pr):
        self.calls.append("fetch_comment_threads")
        if self.threads_error:
            raise self.threads_error
        return self.threads

    async def fetch_changed_files(self, pr):
        self.calls.append("fetch_changed_files")
        if self.changes_error:
            raise self.changes_error
        return self.changes

    async def post_comment(self, pr, text):
        self.calls.append("post_comment")
        if self.publish_error:
            raise self.publish_error
        self.posted.append(text)

    @property
    def network_calls(self):
        return [c for c in self.calls if c != "close"]


class FakeGenerator:
    def __init__(self, review="## Overall Assessment\nLooks good"):
        self.review = review
        self.calls = []

    async def generate_review(self, pr, changes):
        self.calls.append((pr, list(changes)))
        return self.review


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        azure_devops_pat="pat",
        azure_devops_organization="org",
        azure_devops_project="proj",
        openrouter_api_key="key",
    )
