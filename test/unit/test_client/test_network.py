"""
Tests for the HTTP request gateway.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from exploding_kitten.client.network import RequestGateway
from exploding_kitten.shared.errors import MalformedResponse, NetworkError, ServerError
from exploding_kitten.shared.protocols import DrawResult, LeaderboardEntry

BASE = "http://game.example:8080"


class FakeResponse:
    def __init__(self, status=200, body=None, invalid_json=False):
        self.status = status
        self._body = body
        self._invalid_json = invalid_json

    async def json(self, content_type=None):
        if self._invalid_json:
            raise json.JSONDecodeError("Expecting value", "<html>", 0)
        return self._body


class FakeRequest:
    def __init__(self, response=None, error=None):
        self._response = response
        self._error = error

    async def __aenter__(self):
        if self._error is not None:
            raise self._error
        return self._response

    async def __aexit__(self, exc_type, exc, tb):
        return False


def make_gateway(response=None, error=None):
    session = MagicMock(spec=aiohttp.ClientSession)
    session.request = MagicMock(return_value=FakeRequest(response, error))
    session.close = AsyncMock()
    return RequestGateway(BASE, session=session), session


class TestRegister:
    @pytest.mark.asyncio
    async def test_register(self):
        gateway, session = make_gateway(FakeResponse(200, {"message": "Game started", "deck": ["Cat"] * 52}))
        reg = await gateway.register("alice")
        assert reg.deck_size == 52
        assert not reg.resumed
        session.request.assert_called_once_with("POST", f"{BASE}/start-game", json={"username": "alice"})

    @pytest.mark.asyncio
    async def test_register_resumed(self):
        gateway, _ = make_gateway(FakeResponse(200, {"message": "Resuming game", "deck": ["Cat", "Defuse"]}))
        reg = await gateway.register("alice")
        assert reg.resumed
        assert reg.deck_size == 2

    @pytest.mark.asyncio
    async def test_server_error(self):
        gateway, _ = make_gateway(FakeResponse(500, {"error": "Error initializing deck"}))
        with pytest.raises(ServerError) as info:
            await gateway.register("alice")
        assert info.value.status == 500
        assert info.value.server_message == "Error initializing deck"

    @pytest.mark.asyncio
    async def test_missing_deck(self):
        gateway, _ = make_gateway(FakeResponse(200, {"message": "Game started"}))
        with pytest.raises(MalformedResponse):
            await gateway.register("alice")


class TestDraw:
    @pytest.mark.asyncio
    async def test_draw(self):
        gateway, session = make_gateway(FakeResponse(200, {"card": "😼", "message": "You drew a Cat card!"}))
        result = await gateway.draw("alice")
        assert result == DrawResult("😼", "You drew a Cat card!")
        session.request.assert_called_once_with("POST", f"{BASE}/draw-card", json={"username": "alice"})

    @pytest.mark.asyncio
    async def test_empty_deck_is_server_error(self):
        gateway, _ = make_gateway(FakeResponse(400, {"message": "No cards left in the deck"}))
        with pytest.raises(ServerError) as info:
            await gateway.draw("alice")
        assert info.value.status == 400
        assert info.value.server_message == "No cards left in the deck"

    @pytest.mark.asyncio
    async def test_non_json_success_is_malformed(self):
        gateway, _ = make_gateway(FakeResponse(200, invalid_json=True))
        with pytest.raises(MalformedResponse):
            await gateway.draw("alice")

    @pytest.mark.asyncio
    async def test_non_json_error_keeps_status(self):
        gateway, _ = make_gateway(FakeResponse(502, invalid_json=True))
        with pytest.raises(ServerError) as info:
            await gateway.draw("alice")
        assert info.value.status == 502
        assert info.value.body is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        aiohttp.ClientConnectionError("connection refused"),
        asyncio.TimeoutError(),
        ConnectionResetError("reset"),
    ])
    async def test_transport_failures_are_network_errors(self, error):
        gateway, session = make_gateway(error=error)
        with pytest.raises(NetworkError):
            await gateway.draw("alice")
        # no automatic retry
        assert session.request.call_count == 1


class TestLeaderboard:
    @pytest.mark.asyncio
    async def test_fetch(self, sample_leaderboard):
        gateway, session = make_gateway(FakeResponse(200, {"leaderboard": sample_leaderboard}))
        entries = await gateway.fetch_leaderboard()
        assert entries == (LeaderboardEntry("bob", 3, 1), LeaderboardEntry("carol", 2, 5))
        session.request.assert_called_once_with("GET", f"{BASE}/leaderboard", json=None)

    @pytest.mark.asyncio
    async def test_placeholder_is_malformed(self):
        gateway, _ = make_gateway(FakeResponse(200, {"leaderboard": "Top players"}))
        with pytest.raises(MalformedResponse):
            await gateway.fetch_leaderboard()


@pytest.mark.asyncio
async def test_injected_session_is_not_closed():
    gateway, session = make_gateway(FakeResponse(200, {}))
    await gateway.close()
    session.close.assert_not_called()


def test_base_url_trailing_slash():
    assert RequestGateway("http://h:1/").base_url == "http://h:1"
