class ReviewAgentError(Exception):
    """Базовая ошибка агента ревью."""


class InvalidPayload(ReviewAgentError):
    """Тело вебхука не разобрать или в нём нет нужных полей."""


class UpstreamError(ReviewAgentError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamFetchFailed(UpstreamError):
    """Ошибка чтения из Azure DevOps."""


class UpstreamPublishFailed(UpstreamError):
    """Ошибка записи комментария в Azure DevOps."""


class ReviewGenerationFailed(ReviewAgentError):
    """LLM не вернула ревью. Наружу не выходит: LLMClient отдаёт пустую строку."""
