from typing import Iterable, Optional


class Prompts:
    """
    Prompt templates for the review conversation.
    The chat prompt is assembled from a fixed preamble, a PR context block,
    the prior transcript and the new user message.
    """

    CHAT_SYSTEM_PROMPT = """You are an **expert code reviewer** helping a developer review a pull request.
    Answer questions about the changes, point out bugs, security and performance risks,
    and suggest concrete fixes. Format answers with GitHub-flavored Markdown."""

    DIFF_UNAVAILABLE = "(The diff for this pull request is unavailable.)"

    CONTEXT_TEMPLATE = """## Pull Request Context
    **Repository:** {repository}
    **PR #:** {number}
    **Title:** {title}
    **URL:** {url}
    {focus}
    ## Diff
    {diff}"""

    @classmethod
    def context_block(
        cls,
        repository: str,
        number: int,
        title: str,
        url: str,
        focus: Optional[str] = None,
        diff: Optional[str] = None,
    ) -> str:
        focus_line = f"**Reviewer focus:** {focus.strip()}\n" if focus and focus.strip() else ""
        return cls.CONTEXT_TEMPLATE.format(
            repository=repository,
            number=number,
            title=title,
            url=url,
            focus=focus_line,
            # The diff goes in verbatim; format() does not re-scan substituted values.
            diff=diff if diff and diff.strip() else cls.DIFF_UNAVAILABLE,
        )

    @staticmethod
    def history_line(from_user: bool, content: str) -> str:
        prefix = "User:" if from_user else "Assistant:"
        return f"{prefix} {content.strip()}"

    @classmethod
    def chat_prompt(
        cls, context: str, history: Iterable[str], user_message: str
    ) -> str:
        parts = [cls.CHAT_SYSTEM_PROMPT, context]
        history_text = "\n".join(history)
        if history_text:
            parts.append(history_text)
        parts.append(f"User: {user_message.strip()}\nAssistant:")
        return "\n\n".join(parts)
