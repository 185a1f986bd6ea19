from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from pr_review_agent.azure_devops.schemas import (
    PULL_REQUEST_CREATED,
    CommentThread,
    FileChange,
    PullRequestEvent,
    PullRequestRef,
)
from pr_review_agent.config import Settings
from pr_review_agent.errors import InvalidPayload

console = Console()


class RepositoryClient(Protocol):
    async def fetch_pull_request(
        self, pull_request_id: int, repository_id: str, project_id: str | None = None
    ) -> PullRequestRef: ...

    async def fetch_comment_threads(self, pr: PullRequestRef) -> list[CommentThread]: ...

    async def fetch_changed_files(self, pr: PullRequestRef) -> list[FileChange]: ...

    async def post_comment(self, pr: PullRequestRef, text: str) -> None: ...


class ReviewGenerator(Protocol):
    async def generate_review(self, pr: PullRequestRef, changes: list[FileChange]) -> str: ...


class OutcomeStatus(str, Enum):
    IGNORED = "ignored"
    SKIPPED_HAS_COMMENTS = "skipped_has_comments"
    SKIPPED_NO_CHANGES = "skipped_no_changes"
    SKIPPED_EMPTY_REVIEW = "skipped_empty_review"
    COMPLETED = "completed"


MESSAGES = {
    OutcomeStatus.IGNORED: "Event ignored - not a pull request creation event",
    OutcomeStatus.SKIPPED_HAS_COMMENTS: "Pull request already has text comments, skipping code review",
    OutcomeStatus.SKIPPED_NO_CHANGES: "No changes to review",
    OutcomeStatus.SKIPPED_EMPTY_REVIEW: "Code review is empty, nothing was posted",
    OutcomeStatus.COMPLETED: "Code review completed and added as a comment",
}


@dataclass(frozen=True)
class ReviewOutcome:
    status: OutcomeStatus
    message: str

    @classmethod
    def of(cls, status: OutcomeStatus) -> "ReviewOutcome":
        return cls(status, MESSAGES[status])


def parse_event(event: Any) -> PullRequestEvent | None:
    """Разобрать тело вебхука. None - событие не про создание PR."""
    if not isinstance(event, dict):
        raise InvalidPayload("Webhook body must be a JSON object")

    event_type = event.get("eventType")
    if not isinstance(event_type, str):
        raise InvalidPayload("Webhook body has no eventType")
    if event_type != PULL_REQUEST_CREATED:
        return None

    try:
        return PullRequestEvent.model_validate(event)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise InvalidPayload(f"Invalid pull request payload: {fields}") from e


def has_human_comment(threads: list[CommentThread]) -> bool:
    return any(comment.is_human_text for thread in threads for comment in thread.comments)


class ReviewerAgent:
    """Решает, нужно ли ревью для нового PR, и публикует его.

    Проверка комментариев и публикация не атомарны: две одновременные доставки
    одного вебхука могут обе увидеть пустой PR и обе оставить ревью.
    """

    def __init__(self, settings: Settings, repository: RepositoryClient, generator: ReviewGenerator):
        self.settings = settings
        self.repository = repository
        self.generator = generator

    async def handle_pull_request_created(self, event: Any) -> ReviewOutcome:
        parsed = parse_event(event)
        if parsed is None:
            console.print(f"[dim]Пропускаю событие {escape(str(event.get('eventType')))}[/dim]")
            return ReviewOutcome.of(OutcomeStatus.IGNORED)

        resource = parsed.resource
        console.print(
            f"[blue]PR #{resource.pull_request_id} в репозитории {escape(resource.repository.id)}[/blue]"
        )
        pr = await self.repository.fetch_pull_request(
            resource.pull_request_id, resource.repository.id, resource.repository.project.id
        )
        return await self.review(pr)

    async def review(self, pr: PullRequestRef) -> ReviewOutcome:
        # 1. Уже обсуждают - не вмешиваемся
        threads = await self.repository.fetch_comment_threads(pr)
        if has_human_comment(threads):
            console.print("[yellow]В PR уже есть комментарии, ревью не нужно[/yellow]")
            return ReviewOutcome.of(OutcomeStatus.SKIPPED_HAS_COMMENTS)

        # 2. Изменения последней итерации
        console.print("[blue]Получаю изменённые файлы...[/blue]")
        changes = await self.repository.fetch_changed_files(pr)
        if not changes:
            console.print("[yellow]Изменений нет[/yellow]")
            return ReviewOutcome.of(OutcomeStatus.SKIPPED_NO_CHANGES)

        if self.settings.non_code_files == "omit":
            changes = [c for c in changes if c.is_code]

        # 3. Ревью через LLM
        console.print(f"[blue]Анализирую {len(changes)} файлов...[/blue]")
        review = await self.generator.generate_review(pr, changes)
        if not review:
            console.print("[yellow]Ревью пустое, комментарий не публикую[/yellow]")
            return ReviewOutcome.of(OutcomeStatus.SKIPPED_EMPTY_REVIEW)

        # 4. Публикуем
        console.print("[blue]Публикую ревью...[/blue]")
        await self.repository.post_comment(pr, review)
        console.print(f"[green]Ревью PR #{pr.pull_request_id} опубликовано[/green]")
        return ReviewOutcome.of(OutcomeStatus.COMPLETED)
