import asyncio

import typer
import uvicorn
from rich.console import Console
from rich.markup import escape

from pr_review_agent.agents import ReviewerAgent, ReviewOutcome
from pr_review_agent.azure_devops import AzureDevOpsClient
from pr_review_agent.config import Settings, get_settings
from pr_review_agent.errors import ReviewAgentError
from pr_review_agent.llm import LLMClient

app = typer.Typer(
    name="pr-review-agent",
    help="LLM-ревью pull request'ов в Azure DevOps",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Адрес"),
    port: int = typer.Option(8000, "--port", "-p", help="Порт"),
):
    """Запустить сервер вебхуков."""
    uvicorn.run("pr_review_agent.server:app", host=host, port=port)


@app.command()
def review(
    pr: int = typer.Option(..., "--pr", "-p", help="Номер PR"),
    repo: str = typer.Option(..., "--repo", "-r", help="ID или имя репозитория"),
    project: str | None = typer.Option(None, "--project", help="Проект (по умолчанию из настроек)"),
    token: str | None = typer.Option(None, "--token", "-t", help="Azure DevOps PAT"),
):
    """Прогнать ревью для одного PR, как при вебхуке о его создании."""
    settings = get_settings()
    if token:
        settings.azure_devops_pat = token

    try:
        outcome = asyncio.run(_review(settings, pr, repo, project))
    except ReviewAgentError as e:
        console.print(f"[red]Ошибка: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[dim]{escape(outcome.message)}[/dim]")


async def _review(settings: Settings, pr_number: int, repo: str, project: str | None) -> ReviewOutcome:
    async with AzureDevOpsClient(settings) as repository:
        agent = ReviewerAgent(settings, repository, LLMClient(settings))
        pr = await repository.fetch_pull_request(pr_number, repo, project)
        return await agent.review(pr)


if __name__ == "__main__":
    app()
