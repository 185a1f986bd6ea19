from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

NonCodeFiles = Literal["omit", "list", "include"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    azure_devops_pat: str | None = None
    azure_devops_organization: str | None = None
    azure_devops_project: str | None = None
    azure_devops_api_version: str = "7.0"
    http_timeout: float = 30.0

    openrouter_api_key: str | None = None
    llm_model: str = Field(
        default="google/gemini-2.0-flash-lite-preview-02-05:free",
        validation_alias=AliasChoices("OPENROUTER_MODEL", "LLM_MODEL"),
    )
    llm_max_tokens: int = 64000

    # None -> встроенная инструкция из llm.prompts
    review_instructions: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CODE_REVIEW_PROMPT", "REVIEW_INSTRUCTIONS"),
    )
    # omit: не-кодовые файлы не попадают в промпт
    # list: перечислены в "Files changed", без содержимого
    # include: передаются целиком, как код
    non_code_files: NonCodeFiles = "list"

    webhook_secret: str | None = None

    @property
    def litellm_model(self) -> str:
        if self.llm_model.startswith("openrouter/"):
            return self.llm_model
        return f"openrouter/{self.llm_model}"


def get_settings() -> Settings:
    return Settings()
