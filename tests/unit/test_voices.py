"""Tests for saving, listing and deleting voices."""

from __future__ import annotations

import pytest

from conftest import FakeClient
from hume_cli.errors import ConfigurationError, ContinuationError
from hume_cli.history import GenerationHistory
from hume_cli.options import CommonOptions
from hume_cli.voices import Voices, count_voices


@pytest.fixture
def client() -> FakeClient:
    return FakeClient(voices={"voices_page": [{"name": "a"}, {"name": "b"}]})


@pytest.fixture
def voices(env, store, history, reporter, client) -> Voices:
    return Voices(
        env=env,
        store=store,
        history=history,
        reporter=reporter,
        client_factory=lambda api_key, base_url: client,
    )


class TestSaveVoice:
    async def test_save_by_generation_id(self, voices, client, reporter):
        await voices.save(CommonOptions(), name="narrator", generation_id="gen_7")
        assert client.created == [("narrator", "gen_7")]
        assert any("voiceId=voice-123" in line for line in reporter.infos)
        assert reporter.payloads[-1]["name"] == "narrator"

    async def test_save_from_last(self, voices, client, history):
        history.save(GenerationHistory(ids=["gen_1"], timestamp=0))
        await voices.save(CommonOptions(), name="narrator", last=True)
        assert client.created == [("narrator", "gen_1")]

    async def test_save_from_last_with_index(self, voices, client, history):
        history.save(GenerationHistory(ids=["gen_1", "gen_2"], timestamp=0))
        await voices.save(CommonOptions(), name="narrator", last=True, last_index=2)
        assert client.created == [("narrator", "gen_2")]

    async def test_last_requires_index_for_multiple(self, voices, client, history):
        history.save(GenerationHistory(ids=["gen_1", "gen_2"], timestamp=0))
        with pytest.raises(ContinuationError, match="between 1 and 2"):
            await voices.save(CommonOptions(), name="narrator", last=True)
        assert client.created == []

    async def test_last_without_history(self, voices):
        with pytest.raises(ContinuationError, match="No previous generation"):
            await voices.save(CommonOptions(), name="narrator", last=True)

    async def test_requires_source(self, voices):
        with pytest.raises(ConfigurationError, match="--generation-id or --last"):
            await voices.save(CommonOptions(), name="narrator")


class TestListAndDelete:
    async def test_list_defaults_to_custom_voices(self, voices, client, reporter):
        await voices.list(CommonOptions())
        assert client.listed == ["CUSTOM_VOICE"]
        assert "Found 2 voices" in reporter.infos

    async def test_list_library(self, voices, client):
        await voices.list(CommonOptions(), provider="HUME_AI")
        assert client.listed == ["HUME_AI"]

    async def test_delete(self, voices, client, reporter):
        await voices.delete(CommonOptions(), name="narrator")
        assert client.deleted == ["narrator"]
        assert reporter.payloads[-1] == {"name": "narrator", "deleted": True}


@pytest.mark.parametrize(
    "result, expected",
    [
        ([{"name": "a"}], 1),
        ({"voices_page": [{}, {}, {}]}, 3),
        ({"data": []}, 0),
        ({"unexpected": True}, 0),
    ],
)
def test_count_voices(result, expected):
    assert count_voices(result) == expected
