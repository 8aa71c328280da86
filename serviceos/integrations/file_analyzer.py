"""LLM description of media library files.

Images are sent to the model by URL; other files are described from their
name and mime type. The model answers with a structured ``FileAnalysis``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field
from pydantic_ai import Agent, ImageUrl
from pydantic_ai.models import Model

from serviceos.core.database.repositories.files import normalize_tags
from serviceos.core.errors import IntegrationError

logger = logging.getLogger(__name__)

ANALYSIS_MAX_TOKENS = 500

SYSTEM_PROMPT = (
    "You catalogue files for a small business media library. "
    "Describe what a file contains in plain, specific language and suggest short lower-case tags "
    "that someone would type when searching for it."
)


class FileAnalysis(BaseModel):
    description: str = Field(description="2-3 sentence description of the file")
    suggested_tags: List[str] = Field(default_factory=list, description="Short lower-case search tags")
    classification: Dict[str, Any] = Field(
        default_factory=dict, description="Kind of content, e.g. photo, logo, screenshot, contract"
    )


class FileAnalyzer:
    """Describe a stored file with an LLM."""

    def __init__(self, model: Union[Model, str]) -> None:
        self._agent = Agent(
            model,
            output_type=FileAnalysis,
            system_prompt=SYSTEM_PROMPT,
            model_settings={"max_tokens": ANALYSIS_MAX_TOKENS},
        )

    async def analyze(self, *, url: str, mime_type: str, file_name: str) -> FileAnalysis:
        """Describe the file at ``url``.

        Raises:
            IntegrationError: The model call failed.
        """
        if mime_type.startswith("image/"):
            prompt: Any = [f'Analyze this image (filename: "{file_name}").', ImageUrl(url=url)]
        else:
            prompt = (
                f'Describe the file "{file_name}" of type {mime_type or "unknown"} '
                "from its name and type alone."
            )
        try:
            result = await self._agent.run(prompt)
        except Exception as e:
            logger.warning(f"File analysis failed for {file_name}: {e}")
            raise IntegrationError(f"File analysis failed: {e}") from e
        analysis = result.output
        analysis.suggested_tags = normalize_tags(analysis.suggested_tags)
        return analysis
