from pr_review_agent.llm.client import LLMClient
from pr_review_agent.llm.prompts import DEFAULT_REVIEW_INSTRUCTIONS, SYSTEM_PROMPT, build_review_prompt

__all__ = ["LLMClient", "DEFAULT_REVIEW_INSTRUCTIONS", "SYSTEM_PROMPT", "build_review_prompt"]
