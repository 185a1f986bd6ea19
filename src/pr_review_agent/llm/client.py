import litellm
from rich.console import Console
from rich.markup import escape

from pr_review_agent.azure_devops.schemas import FileChange, PullRequestRef
from pr_review_agent.config import Settings
from pr_review_agent.errors import ReviewGenerationFailed
from pr_review_agent.llm.prompts import SYSTEM_PROMPT, build_review_prompt, is_reviewable

console = Console()

EXTRA_HEADERS = {
    "HTTP-Referer": "https://pr-review-agent",
    "X-Title": "PR Review Agent",
}


class LLMClient:
    def __init__(self, settings: Settings):
        self.model = settings.litellm_model
        self.api_key = settings.openrouter_api_key
        self.max_tokens = settings.llm_max_tokens
        self.instructions = settings.review_instructions
        self.non_code_files = settings.non_code_files

    async def generate_review(self, pr: PullRequestRef, changes: list[FileChange]) -> str:
        """Сгенерировать ревью PR.

        Никогда не бросает исключений: любая ошибка (сеть, статус, кривой ответ,
        пустой список choices) логируется и превращается в пустую строку.
        Пустая строка значит "ревью нет".
        """
        if not any(is_reviewable(c, self.non_code_files) for c in changes):
            console.print("[yellow]Нет файлов с кодом для ревью[/yellow]")
            return ""

        prompt = build_review_prompt(pr, changes, self.instructions, self.non_code_files)

        console.print(f"[blue]Запрашиваю ревью у {escape(self.model)}...[/blue]")
        try:
            return await self._complete(prompt)
        except Exception as e:
            console.print(f"[red]Ошибка генерации ревью: {escape(str(e))}[/red]")
            return ""

    async def _complete(self, prompt: str) -> str:
        response = await litellm.acompletion(
            model=self.model,
            api_key=self.api_key,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.max_tokens,
            extra_headers=EXTRA_HEADERS,
        )

        if not response.choices:
            raise ReviewGenerationFailed("completion returned no choices")

        text = response.choices[0].message.content
        if not text or not text.strip():
            raise ReviewGenerationFailed("completion returned empty content")
        return text.strip()
