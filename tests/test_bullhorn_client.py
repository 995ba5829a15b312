"""
Tests for bullhorn.client.BullhornClient against a local aiohttp server.
"""
from urllib.parse import parse_qs, urlparse

import pytest
from aiohttp import web
from aiohttp import test_utils

from bullhorn.client import BullhornClient
from bullhorn.config import BullhornConfig
from bullhorn.errors import BackendErrorCategory, BackendUnavailable


def _config(base_url: str) -> BullhornConfig:
    return BullhornConfig(
        client_id="client",
        client_secret="secret",
        redirect_uri="http://localhost:3000/api/bullhorn/oauth/callback",
        auth_base_url=f"{base_url}/oauth",
        login_url=f"{base_url}/rest-services/login",
        timeout_seconds=5,
    )


def _bullhorn_app(received: dict) -> web.Application:
    async def token(request: web.Request) -> web.Response:
        form = await request.post()
        received["token_form"] = dict(form)
        if form.get("code") != "good-code":
            return web.json_response({"error": "invalid_grant"}, status=400)
        return web.json_response({"access_token": "at-1", "refresh_token": "rt-1", "expires_in": 600})

    async def login(request: web.Request) -> web.Response:
        received["login_query"] = dict(request.query)
        if request.query.get("access_token") != "at-1":
            return web.json_response({"errorMessage": "Invalid access token"}, status=401)
        origin = str(request.url.origin())
        return web.json_response({"BhRestToken": "bh-1", "restUrl": f"{origin}/rest-services/abc/"})

    async def search(request: web.Request) -> web.Response:
        received["search_query"] = dict(request.query)
        if request.headers.get("BhRestToken") != "bh-1":
            return web.json_response({"errorMessage": "Bad token"}, status=401)
        return web.json_response({"total": 1, "start": 0, "count": 1, "data": [{"id": 9, "name": "Ada"}]})

    app = web.Application()
    app.router.add_post("/oauth/token", token)
    app.router.add_get("/rest-services/login", login)
    app.router.add_get("/rest-services/abc/search/Candidate", search)
    return app


def test_authorize_url():
    client = BullhornClient(_config("https://auth.example"))
    url = urlparse(client.authorize_url())
    query = parse_qs(url.query)

    assert f"{url.scheme}://{url.netloc}{url.path}" == "https://auth.example/oauth/authorize"
    assert query["client_id"] == ["client"]
    assert query["response_type"] == ["code"]
    assert query["redirect_uri"] == ["http://localhost:3000/api/bullhorn/oauth/callback"]


@pytest.mark.asyncio
async def test_exchange_login_and_search():
    received = {}
    async with test_utils.TestServer(_bullhorn_app(received)) as server:
        base = str(server.make_url("")).rstrip("/")
        client = BullhornClient(_config(base))

        grant = await client.exchange_code("good-code")
        assert grant.access_token == "at-1"
        assert grant.refresh_token == "rt-1"
        assert received["token_form"]["grant_type"] == "authorization_code"
        assert received["token_form"]["client_secret"] == "secret"

        session = await client.login(grant.access_token)
        assert session.session_token == "bh-1"
        assert session.rest_url == f"{base}/rest-services/abc/"
        assert received["login_query"]["version"] == "2.0"

        records = await client.search_candidates(
            session.rest_url, session.session_token, "isDeleted:false", 5, "id,name"
        )
        assert records == [{"id": 9, "name": "Ada"}]
        assert received["search_query"] == {
            "query": "isDeleted:false",
            "count": "5",
            "start": "0",
            "fields": "id,name",
        }


@pytest.mark.asyncio
async def test_token_exchange_failure():
    async with test_utils.TestServer(_bullhorn_app({})) as server:
        client = BullhornClient(_config(str(server.make_url("")).rstrip("/")))

        with pytest.raises(BackendUnavailable) as exc_info:
            await client.exchange_code("bad-code")

    assert exc_info.value.category == BackendErrorCategory.TOKEN_EXCHANGE_FAILED
    assert exc_info.value.status == 400


@pytest.mark.asyncio
async def test_login_failure():
    async with test_utils.TestServer(_bullhorn_app({})) as server:
        client = BullhornClient(_config(str(server.make_url("")).rstrip("/")))

        with pytest.raises(BackendUnavailable) as exc_info:
            await client.login("expired")

    assert exc_info.value.category == BackendErrorCategory.LOGIN_FAILED
    assert exc_info.value.status == 401


@pytest.mark.asyncio
async def test_search_failure():
    async with test_utils.TestServer(_bullhorn_app({})) as server:
        base = str(server.make_url("")).rstrip("/")
        client = BullhornClient(_config(base))

        with pytest.raises(BackendUnavailable) as exc_info:
            await client.search_candidates(f"{base}/rest-services/abc", "wrong", "isDeleted:false", 5, "id")

    assert exc_info.value.category == BackendErrorCategory.SEARCH_FAILED
    assert exc_info.value.status == 401


@pytest.mark.asyncio
async def test_network_error():
    client = BullhornClient(_config("http://127.0.0.1:1"))

    with pytest.raises(BackendUnavailable) as exc_info:
        await client.login("at-1")

    assert exc_info.value.category == BackendErrorCategory.NETWORK_ERROR
