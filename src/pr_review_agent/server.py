import hmac
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
from rich.console import Console
from rich.markup import escape

from pr_review_agent.agents.reviewer import ReviewerAgent
from pr_review_agent.azure_devops import AzureDevOpsClient
from pr_review_agent.config import Settings, get_settings
from pr_review_agent.errors import InvalidPayload, ReviewAgentError
from pr_review_agent.llm import LLMClient

console = Console()

REQUIRED_SETTINGS = ["azure_devops_pat", "azure_devops_organization", "openrouter_api_key"]


def verify_function_key(provided: str, secret: str | None) -> bool:
    if not secret:
        return True
    return hmac.compare_digest(provided.encode(), secret.encode())


def create_app(
    settings: Settings | None = None,
    repository_factory: Callable[[Settings], AzureDevOpsClient] = AzureDevOpsClient,
    generator_factory: Callable[[Settings], LLMClient] = LLMClient,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        missing = [name for name in REQUIRED_SETTINGS if not getattr(settings, name)]
        if missing:
            console.print(f"[yellow]Не заданы настройки: {', '.join(missing)}[/yellow]")
        console.print("[green]Сервер запущен[/green]")
        yield
        console.print("[yellow]Сервер остановлен[/yellow]")

    app = FastAPI(lifespan=lifespan)

    @app.post("/api/pullRequestTrigger", response_class=PlainTextResponse)
    async def pull_request_trigger(request: Request):
        provided = request.headers.get("x-functions-key") or request.query_params.get("code", "")
        if not verify_function_key(provided, settings.webhook_secret):
            raise HTTPException(status_code=401, detail="Invalid function key")

        console.print("[blue]Pull Request Webhook triggered[/blue]")
        try:
            try:
                event = await request.json()
            except ValueError as e:
                raise InvalidPayload("Webhook body is not valid JSON") from e

            async with repository_factory(settings) as repository:
                agent = ReviewerAgent(settings, repository, generator_factory(settings))
                outcome = await agent.handle_pull_request_created(event)
        except ReviewAgentError as e:
            console.print(f"[red]Ошибка обработки вебхука: {escape(str(e))}[/red]")
            return PlainTextResponse(f"Error processing pull request: {e}", status_code=500)

        return PlainTextResponse(outcome.message)

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


app = create_app()
