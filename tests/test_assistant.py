"""Tests for the text improvement assistant."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from assistant import FIELD_LIMITS, TextImprover
from common.errors import InternalError, NotFound, ValidationError


class FakeStream:
    """Async iterator over completion chunks."""

    def __init__(self, pieces):
        self.chunks = [
            SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=piece))])
            for piece in pieces
        ]
        self.chunks.append(SimpleNamespace(choices=[]))

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk


def llm_client(pieces=None, error=None):
    client = MagicMock()
    if error:
        client.chat.completions.create = AsyncMock(side_effect=error)
    else:
        client.chat.completions.create = AsyncMock(return_value=FakeStream(pieces))
    return client


@pytest.mark.asyncio
async def test_streamed_chunks_are_joined(campaign_manager):
    client = llm_client(["  Grow ", "together", None, " \n"])
    improver = TextImprover(client, "gpt-4o-mini", campaign_manager)

    result = await improver.improve_field("name", "community garden", current_value="garden")

    assert result == "Grow together"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["stream"] is True
    assert "garden" in kwargs["messages"][-1]["content"]


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["name", "description"])
async def test_result_truncated_to_field_limit(campaign_manager, field):
    improver = TextImprover(llm_client(["x" * 300]), "gpt-4o-mini", campaign_manager)

    result = await improver.improve_field(field, "context", current_value="value")

    assert len(result) == FIELD_LIMITS[field]


@pytest.mark.asyncio
async def test_current_value_read_from_campaign(campaign_manager, donation_campaign):
    client = llm_client(["Better garden"])
    improver = TextImprover(client, "gpt-4o-mini", campaign_manager)

    await improver.improve_field("description", "more upbeat", campaign_id=str(donation_campaign.id))

    prompt = client.chat.completions.create.call_args.kwargs["messages"][-1]["content"]
    assert donation_campaign.description in prompt


@pytest.mark.asyncio
async def test_unknown_campaign(campaign_manager):
    improver = TextImprover(llm_client(["x"]), "gpt-4o-mini", campaign_manager)

    with pytest.raises(NotFound):
        await improver.improve_field("name", "context", campaign_id="not-a-campaign")


@pytest.mark.asyncio
@pytest.mark.parametrize("args", [
    {"field": "image", "context": "c", "current_value": "v"},
    {"field": "name", "context": "  ", "current_value": "v"},
    {"field": "name", "context": "c"},
])
async def test_invalid_requests(campaign_manager, args):
    improver = TextImprover(llm_client(["x"]), "gpt-4o-mini", campaign_manager)

    with pytest.raises(ValidationError):
        await improver.improve_field(**args)


@pytest.mark.asyncio
async def test_llm_failure_is_internal_error(campaign_manager):
    improver = TextImprover(llm_client(error=RuntimeError("rate limited")), "gpt-4o-mini", campaign_manager)

    with pytest.raises(InternalError) as exc:
        await improver.improve_field("name", "context", current_value="value")
    assert isinstance(exc.value.cause, RuntimeError)


@pytest.mark.asyncio
async def test_not_configured(campaign_manager):
    improver = TextImprover(None, "gpt-4o-mini", campaign_manager)

    with pytest.raises(InternalError):
        await improver.improve_field("name", "context", current_value="value")
