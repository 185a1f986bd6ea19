import asyncio
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from pr_review_agent.azure_devops.languages import identify_language
from pr_review_agent.azure_devops.schemas import (
    ChangeType,
    Comment,
    CommentThread,
    FileChange,
    PullRequestRef,
)
from pr_review_agent.config import Settings
from pr_review_agent.errors import UpstreamFetchFailed, UpstreamPublishFailed

console = Console()

BASE_URL = "https://dev.azure.com"


class AzureDevOpsClient:
    """Тонкая обёртка над Git REST API Azure DevOps.

    Создаётся на один вебхук и закрывается после него, общих соединений между
    запросами нет.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.project = settings.azure_devops_project or ""
        self.api_version = settings.azure_devops_api_version
        organization = quote(settings.azure_devops_organization or "", safe="")
        self.http = httpx.AsyncClient(
            base_url=f"{BASE_URL}/{organization}/",
            auth=httpx.BasicAuth("", settings.azure_devops_pat or ""),
            headers={"Accept": "application/json"},
            timeout=settings.http_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "AzureDevOpsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    async def fetch_pull_request(
        self, pull_request_id: int, repository_id: str, project_id: str | None = None
    ) -> PullRequestRef:
        project = project_id or self.project
        data = await self._get_json(self._repo_url(project, repository_id, "pullrequests", pull_request_id))

        repository = data.get("repository") or {}
        if not data.get("pullRequestId") or not repository.get("id"):
            raise UpstreamFetchFailed(f"Pull request {pull_request_id} has no valid ID or repository")

        try:
            return PullRequestRef(
                pull_request_id=data["pullRequestId"],
                repository_id=repository["id"],
                project_id=(repository.get("project") or {}).get("id") or project,
                title=data.get("title") or "",
                description=data.get("description"),
                source_branch=data.get("sourceRefName") or "",
                target_branch=data.get("targetRefName") or "",
            )
        except ValidationError as e:
            raise UpstreamFetchFailed(f"Unexpected pull request {pull_request_id} payload: {e}") from e

    async def fetch_comment_threads(self, pr: PullRequestRef) -> list[CommentThread]:
        data = await self._get_json(self._pr_url(pr, "threads"))
        try:
            return [self._parse_thread(raw) for raw in data.get("value") or []]
        except (ValidationError, AttributeError, TypeError) as e:
            raise UpstreamFetchFailed(f"Unexpected threads payload for pull request {pr.pull_request_id}") from e

    async def fetch_changed_files(self, pr: PullRequestRef) -> list[FileChange]:
        """Файлы последней итерации PR вместе с содержимым.

        Содержимое качается параллельно; ошибка по одному файлу не роняет
        остальные, а попадает в FileChange.error.
        """
        iterations = (await self._get_json(self._pr_url(pr, "iterations"))).get("value") or []
        try:
            latest = iterations[-1].get("id") if iterations else None
        except (AttributeError, TypeError, KeyError) as e:
            raise UpstreamFetchFailed(f"Unexpected iterations payload for pull request {pr.pull_request_id}") from e
        if not latest:
            raise UpstreamFetchFailed(f"No iterations found for pull request {pr.pull_request_id}")

        data = await self._get_json(self._pr_url(pr, "iterations", latest, "changes"))
        try:
            entries = [
                entry
                for entry in data.get("changeEntries") or []
                if isinstance((entry.get("item") or {}).get("path"), str)
                and entry["item"]["path"]
                and not entry["item"].get("isFolder")
            ]
        except (AttributeError, TypeError) as e:
            raise UpstreamFetchFailed(f"Unexpected changes payload for pull request {pr.pull_request_id}") from e

        return list(await asyncio.gather(*(self._load_file(pr, entry) for entry in entries)))

    async def post_comment(
        self,
        pr: PullRequestRef,
        text: str,
        file_path: str | None = None,
        line: int | None = None,
        thread_id: int | None = None,
        parent_comment_id: int = 0,
    ) -> None:
        """Оставить комментарий.

        Без дополнительных аргументов создаётся новый тред верхнего уровня.
        file_path (и line) привязывают новый тред к файлу и строке,
        thread_id добавляет ответ в существующий тред.
        """
        if not text or not text.strip():
            raise ValueError("Comment text must not be empty")
        if line is not None and not file_path:
            raise ValueError("line requires file_path")
        if thread_id is not None and file_path:
            raise ValueError("file_path cannot be set when replying to a thread")

        comment = {"parentCommentId": parent_comment_id, "content": text, "commentType": "text"}
        if thread_id is not None:
            url = self._pr_url(pr, "threads", thread_id, "comments")
            body = comment
        else:
            url = self._pr_url(pr, "threads")
            body = {"comments": [comment], "status": "active"}
            if file_path:
                context = {"filePath": file_path}
                if line is not None:
                    context["rightFileStart"] = {"line": line, "offset": 1}
                    context["rightFileEnd"] = {"line": line, "offset": 1}
                body["threadContext"] = context

        try:
            resp = await self.http.post(url, params={"api-version": self.api_version}, json=body)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamPublishFailed(
                f"POST {url} returned {e.response.status_code}", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamPublishFailed(f"POST {url} failed: {e}") from e

    def _parse_thread(self, raw: dict) -> CommentThread:
        context = raw.get("threadContext") or {}
        thread_deleted = bool(raw.get("isDeleted"))
        comments = [
            Comment(
                id=c.get("id") or 0,
                author=(c.get("author") or {}).get("displayName") or "Unknown",
                content=c.get("content") or "",
                published_date=c.get("publishedDate"),
                last_updated_date=c.get("lastUpdatedDate"),
                comment_type=c.get("commentType"),
                is_deleted=thread_deleted or bool(c.get("isDeleted")),
            )
            for c in raw.get("comments") or []
        ]
        status = raw.get("status")
        return CommentThread(
            id=raw.get("id") or 0,
            status=str(status) if status is not None else None,
            file_path=context.get("filePath"),
            line=(context.get("rightFileStart") or {}).get("line"),
            comments=comments,
        )

    async def _load_file(self, pr: PullRequestRef, entry: dict) -> FileChange:
        item = entry["item"]
        path = item["path"]
        change_type = ChangeType.from_azure(entry.get("changeType"))
        language, is_code = identify_language(path)
        original_path = entry.get("originalPath") or entry.get("sourceServerItem")
        change = FileChange(
            path=path,
            change_type=change_type,
            original_path=original_path if isinstance(original_path, str) else None,
            language=language,
            is_code=is_code,
        )
        if change_type == ChangeType.DELETE:
            return change

        object_id = item.get("objectId")
        if not object_id:
            return change.model_copy(update={"error": "missing object id"})

        try:
            content = await self._get_text(
                self._repo_url(self._project(pr), pr.repository_id, "blobs", object_id),
                params={"$format": "text"},
            )
        except Exception as e:
            console.print(f"[red]Не удалось получить {escape(path)}: {escape(str(e))}[/red]")
            return change.model_copy(update={"error": str(e) or type(e).__name__})

        return change.model_copy(update={"content": content})

    async def _get_json(self, url: str, params: dict | None = None) -> dict:
        resp = await self._get(url, params)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamFetchFailed(f"GET {url} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamFetchFailed(f"GET {url} returned unexpected payload")
        return data

    async def _get_text(self, url: str, params: dict | None = None) -> str:
        resp = await self._get(url, params, headers={"Accept": "text/plain"})
        return resp.text

    async def _get(self, url: str, params: dict | None = None, headers: dict | None = None) -> httpx.Response:
        try:
            resp = await self.http.get(
                url, params={"api-version": self.api_version, **(params or {})}, headers=headers
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchFailed(
                f"GET {url} returned {e.response.status_code}", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchFailed(f"GET {url} failed: {e}") from e
        return resp

    def _project(self, pr: PullRequestRef) -> str:
        return pr.project_id or self.project

    def _pr_url(self, pr: PullRequestRef, *parts) -> str:
        return self._repo_url(self._project(pr), pr.repository_id, "pullRequests", pr.pull_request_id, *parts)

    def _repo_url(self, project: str, repository_id: str, *parts) -> str:
        segments = [quote(project, safe=""), "_apis/git/repositories", quote(repository_id, safe="")]
        segments.extend(quote(str(p), safe="") for p in parts)
        return "/".join(segments)
