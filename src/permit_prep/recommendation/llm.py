# ABOUTME: Builds the personalized study-recommendation prompt and calls the Claude API.
# ABOUTME: Wraps every client failure in RecommendationGenerationError for the caller to absorb.

from __future__ import annotations

import os
import re
from typing import Any, Optional, Sequence

from ..common.schemas import CategoryPerformance


class RecommendationGenerationError(RuntimeError):
    """Raised when a recommendation could not be produced by the AI collaborator."""


def sanitize_for_prompt(text: str, max_length: int = 100) -> str:
    """
    Sanitize text for safe inclusion in LLM prompts.

    Removes newlines and non-printable characters, collapses whitespace and truncates.
    """
    if not isinstance(text, str):
        text = str(text)

    text = text.replace("\n", " ").replace("\r", " ")
    text = "".join(char for char in text if char.isprintable() or char == " ")
    text = re.sub(r"\s+", " ", text)
    return text[:max_length].strip()


def build_recommendation_prompt(
    weak_categories: Sequence[CategoryPerformance],
    overall_accuracy: float,
    questions_seen: int,
) -> str:
    if weak_categories:
        weak_lines = "\n".join(
            f"- {sanitize_for_prompt(perf.category.value, max_length=50)}: {perf.accuracy:.0%} accuracy "
            f"over {perf.total_attempts} attempts"
            for perf in weak_categories
        )
    else:
        weak_lines = "- None yet"

    return f"""You are Scout, a friendly study coach for the California DMV permit test.

## Learner Progress
- Overall accuracy: {overall_accuracy:.0%}
- Questions seen: {questions_seen}

## Weakest Categories
{weak_lines}

## Your Task
Write 2-3 encouraging sentences telling the learner what to study next.
Name the specific categories to focus on and one concrete practice step.
Respond with plain text only.
"""


class ClaudeRecommendationGenerator:
    """Generates recommendation text through the Anthropic Messages API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-3-haiku-20240307",
        max_tokens: int = 300,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client
        api_key = self.api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise RecommendationGenerationError("ANTHROPIC_API_KEY not set")
        try:
            import anthropic
        except ImportError as exc:
            raise RecommendationGenerationError(
                "anthropic package required. Install with: pip install 'permit-prep-analytics[llm]'"
            ) from exc
        self._client = anthropic.Anthropic(api_key=api_key)
        return self._client

    def __call__(
        self,
        weak_categories: Sequence[CategoryPerformance],
        overall_accuracy: float,
        questions_seen: int,
    ) -> str:
        client = self._get_client()
        prompt = build_recommendation_prompt(weak_categories, overall_accuracy, questions_seen)
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
            content = response.content[0].text
        except Exception as exc:
            raise RecommendationGenerationError(f"Claude request failed: {exc}") from exc

        text = content.strip()
        if not text:
            raise RecommendationGenerationError("Claude returned an empty recommendation")
        return text
