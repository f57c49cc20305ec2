"""Assistant module for rewriting campaign copy with an LLM.

The completion is streamed and the chunks are joined, then the result is
cut to the length the campaign field accepts.
"""

import logging
from typing import Any, Optional

from common.errors import AppError, InternalError, ValidationError

logger = logging.getLogger(__name__)

FIELD_LIMITS = {
    'name': 100,
    'description': 256
}

SYSTEM_PROMPT = (
    "You improve crowdfunding campaign copy. Reply with the improved text only, "
    "without quotes or commentary."
)


def build_prompt(field: str, context: str, current_value: str) -> str:
    return (
        f"Improve this campaign {field}. It must be at most {FIELD_LIMITS[field]} characters.\n"
        f"Context: {context}\n"
        f"Current {field}: {current_value}"
    )


class TextImprover:
    """Improves campaign names and descriptions."""

    def __init__(self, client, model: str, campaigns=None):
        """Initialize the improver.

        Args:
            client: openai.AsyncOpenAI client, or None when no API key is configured
            model: Chat completion model name
            campaigns: Campaign manager used to read the current value by campaign id
        """
        self.client = client
        self.model = model
        self.campaigns = campaigns

    async def _complete(self, prompt: str) -> str:
        stream = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ],
            stream=True
        )

        parts = []
        async for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                parts.append(content)
        return ''.join(parts)

    async def improve_field(
        self,
        field: str,
        context: str,
        current_value: Optional[str] = None,
        campaign_id: Optional[Any] = None
    ) -> str:
        """Suggest a better value for a campaign field.

        Args:
            field: name or description
            context: What the campaign is about
            current_value: Text to improve, required without campaign_id
            campaign_id: Campaign to read the current text from

        Returns:
            The improved text, truncated to the field's length limit

        Raises:
            ValidationError: If the field, context or current value is invalid
            NotFound: If campaign_id does not exist
            InternalError: If the completion fails
        """
        if field not in FIELD_LIMITS:
            raise ValidationError("field must be name or description")
        if not context or not context.strip():
            raise ValidationError("context is required")

        if campaign_id is not None:
            campaign = await self.campaigns.get_campaign(campaign_id)
            current_value = getattr(campaign, field)
        elif not current_value:
            raise ValidationError("currentValue or campaignId is required")

        if self.client is None:
            raise InternalError("Text improvement is not configured")

        try:
            text = await self._complete(build_prompt(field, context, current_value))
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error improving campaign {field}: {e}")
            raise InternalError("Failed to improve text", cause=e)

        improved = text.strip()[:FIELD_LIMITS[field]]
        if not improved:
            raise InternalError("Empty completion")
        return improved


__all__ = ['TextImprover', 'FIELD_LIMITS', 'build_prompt']
