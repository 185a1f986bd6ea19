from pr_review_agent.azure_devops.schemas import FileChange, PullRequestRef
from pr_review_agent.config import NonCodeFiles

SYSTEM_PROMPT = (
    "You are a senior developer and an expert code reviewer of the language of the code. "
    "Analyze the code and provide detailed, constructive feedback. "
    "Do not hallucinate any code, and be specific about the changes. "
    "Use markdown formatting of review."
)

DEFAULT_REVIEW_INSTRUCTIONS = """Please provide a comprehensive code review according to the language of the code with the following sections:
1. Overall Assessment
2. Code Quality
3. Potential Issues
4. Security Concerns
5. Specific Recommendations

Write the review in the language of the reviewed code and format it with markdown for readability in Azure DevOps comments.
End the review on an encouraging note."""

CONTENT_UNAVAILABLE = "Content not available"
CONTENT_OMITTED = "Content omitted (not a code file)"


def is_reviewable(change: FileChange, non_code_files: NonCodeFiles) -> bool:
    """Файл идёт в ревью как код, а не только упоминается в списке."""
    return change.is_code or non_code_files == "include"


def build_review_prompt(
    pr: PullRequestRef,
    changes: list[FileChange],
    instructions: str | None = None,
    non_code_files: NonCodeFiles = "list",
) -> str:
    parts = [
        f"Pull Request Title: {pr.title}",
        f"Description: {pr.description or 'No description provided'}",
        "",
        f"Files changed ({len(changes)}):",
        "",
    ]

    for index, change in enumerate(changes, start=1):
        parts.append(f"File {index}: {change.path} ({change.language or 'Unknown'})")
        parts.append(f"Change type: {change.change_type.value}")
        if change.original_path and change.original_path != change.path:
            parts.append(f"Renamed from: {change.original_path}")

        if change.error:
            parts.append(f"Error retrieving content: {change.error}")
        elif not is_reviewable(change, non_code_files):
            parts.append(CONTENT_OMITTED)
        elif change.content:
            parts.append(f"```\n{change.content}\n```")
        else:
            parts.append(CONTENT_UNAVAILABLE)
        parts.append("")

    parts.append(instructions or DEFAULT_REVIEW_INSTRUCTIONS)
    return "\n".join(parts)
