"""
Summarization of search results for codefinder.

Builds a plain-text prompt from a SearchResults and asks a language model to
explain what the snippets show. Any failure surfaces as SummarizationError so
the caller can fall back to printing the raw results.
"""

import logging
from typing import Any, Optional

import anthropic

from .models.config import SecurityConfig, SummarizerConfig
from .models.search_results import SearchResults


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant that summarises code snippets."

INSTRUCTIONS = (
    "Please summarise what these snippets show about the user's question. "
    "Provide a clear, high-level explanation of the relevant logic, configuration or data flow. "
    "Do not repeat the code lines verbatim, but refer to them by their index when necessary."
)


class SummarizationError(RuntimeError):
    """Raised when the summary could not be produced."""
    pass


def build_prompt(results: SearchResults, security: Optional[SecurityConfig] = None) -> str:
    """
    Render results as the user message sent to the model.

    Args:
        results: Search results to describe
        security: Optional redaction settings applied to the snippets; lines
            containing a query token are always kept

    Returns:
        Prompt text; the results themselves are not modified
    """
    tokens = results.query.get_tokens()
    prompt = (
        f'The user asked: "{results.query.text}". '
        "I found the following code snippets and configuration lines in the project:\n"
    )
    for idx, match in enumerate(results.matches, 1):
        snippet = match.snippet
        if security:
            snippet = security.redact_text(snippet, keep_tokens=tokens)
        prompt += f"\n[{idx}] {match.file}:{match.line}\n{snippet}\n"
    prompt += "\n" + INSTRUCTIONS
    return prompt


class Summarizer:
    """
    Client for the summarization model.

    Args:
        config: Summarizer settings
        security: Redaction settings for outgoing snippets
        client: Pre-built API client; created lazily from the config when omitted
    """

    def __init__(self, config: Optional[SummarizerConfig] = None,
                 security: Optional[SecurityConfig] = None, client: Optional[Any] = None):
        self.config = config or SummarizerConfig()
        self.security = security or SecurityConfig()
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            api_key = self.config.resolve_api_key()
            if not api_key:
                raise SummarizationError(
                    f"No API key configured; set {self.config.get_env_var()} or summarizer.api_key"
                )
            self._client = anthropic.Anthropic(api_key=api_key, timeout=self.config.timeout_seconds)
        return self._client

    def summarize(self, results: SearchResults) -> str:
        """
        Summarize non-empty search results.

        Args:
            results: Results of a completed search

        Returns:
            Summary text

        Raises:
            SummarizationError: If there is nothing to summarize, the client
                cannot be created, the API call fails or returns no text
        """
        if results.is_empty():
            raise SummarizationError("No results to summarize")

        prompt = build_prompt(results, self.security)
        client = self._get_client()

        try:
            response = client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise SummarizationError(f"Error calling {self.config.provider.value} API: {e}") from e
        except Exception as e:
            raise SummarizationError(f"Unexpected summarizer failure: {e}") from e

        text = "".join(
            getattr(block, "text", "") for block in (response.content or [])
            if getattr(block, "type", None) == "text"
        ).strip()
        if not text:
            raise SummarizationError("Model returned an empty summary")

        logger.debug(f"Summary received ({len(text)} characters)")
        return text
