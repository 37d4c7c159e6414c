"""Optional LLM rewrite of heuristic tool descriptions.

Enrichment never blocks registration: any failure leaves the heuristic
metadata untouched.
"""

import logging
from dataclasses import replace
from typing import Optional

from form_mcp.adaptors import get_adaptor
from form_mcp.analyzer import ToolMetadata
from form_mcp.config import EnhancerSettings
from form_mcp.exceptions import EnrichmentError
from form_mcp.model import DescriptionAdaptor

logger = logging.getLogger(__name__)


def build_prompt(metadata: ToolMetadata) -> str:
    fields = "\n".join(
        f"- {prop.title or name} ({prop.type}): {prop.description or ''}"
        for name, prop in metadata.input_schema.properties.items()
    )
    return (
        "You are helping describe a web form as an AI tool. "
        "Given this form information:\n\n"
        f"Name: {metadata.name}\n"
        f"Current description: {metadata.description}\n"
        f"Fields:\n{fields}\n\n"
        "Write a concise (1-2 sentence) description of what this tool does and "
        "when an AI agent should use it. Be specific and actionable. "
        "Respond with only the description, no preamble."
    )


class DescriptionEnricher:
    """Replaces a tool's description with one written by a language model.

    Args:
        settings: Provider selection and credentials.
        adaptor: Pre-built adaptor; built lazily from settings when omitted.
    """

    def __init__(
        self,
        settings: EnhancerSettings,
        adaptor: Optional[DescriptionAdaptor] = None,
    ):
        self.settings = settings
        self._adaptor = adaptor

    def _get_adaptor(self) -> DescriptionAdaptor:
        if self._adaptor is None:
            self._adaptor = get_adaptor(
                self.settings.provider,
                api_key=self.settings.api_key,
                model=self.settings.model,
                base_url=self.settings.base_url,
            )
        return self._adaptor

    async def describe(self, metadata: ToolMetadata) -> str:
        """Ask the provider for a description.

        Raises:
            EnrichmentError: If the provider reply is empty or not text.
        """
        reply = await self._get_adaptor().describe(build_prompt(metadata))
        if not isinstance(reply, str) or not reply.strip():
            raise EnrichmentError(f"Empty description from {self.settings.provider}")
        return reply.strip()

    async def enrich(self, metadata: ToolMetadata) -> ToolMetadata:
        try:
            description = await self.describe(metadata)
        except Exception as e:
            logger.warning(
                f"Enrichment failed for '{metadata.name}', using heuristic description: {e}"
            )
            return metadata
        return replace(metadata, description=description)
