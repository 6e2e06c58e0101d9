"""Tests for the OAuth install callbacks."""

import pytest
from httpx import AsyncClient

from workplace_admin.core.config import settings
from workplace_admin.db.models import Community, Page


def token_response(token: str):
    return {"access_token": token, "token_type": "bearer"}


@pytest.mark.asyncio
async def test_community_install_creates_community(client: AsyncClient, db, graph):
    graph.add("GET", "oauth/access_token", token_response("community-token"))
    graph.add("GET", "community", {"id": "9001", "name": "Acme"})

    response = await client.get("/community_install", params={"code": "abc", "state": "s1"})

    assert response.status_code == 200
    assert "Acme" in response.text
    assert "s1" in response.text

    community = db.get(Community, "9001")
    assert community.name == "Acme"
    assert community.access_token == "community-token"

    exchange = graph.calls("GET", "oauth/access_token")[0]
    assert exchange.url.params["code"] == "abc"
    assert exchange.url.params["client_id"] == settings.APP_ID
    assert exchange.url.params["client_secret"] == settings.APP_SECRET
    assert exchange.url.params["redirect_uri"] == settings.APP_REDIRECT


@pytest.mark.asyncio
async def test_community_install_links_back_to_http_redirect(client: AsyncClient, graph):
    graph.add("GET", "oauth/access_token", token_response("community-token"))
    graph.add("GET", "community", {"id": "9001", "name": "Acme"})

    response = await client.get(
        "/community_install",
        params={"code": "abc", "redirect_uri": "https://work.workplace.com/done"},
    )

    assert 'href="https://work.workplace.com/done"' in response.text


@pytest.mark.asyncio
async def test_community_install_drops_script_redirect(client: AsyncClient, graph):
    graph.add("GET", "oauth/access_token", token_response("community-token"))
    graph.add("GET", "community", {"id": "9001", "name": "Acme"})

    response = await client.get(
        "/community_install",
        params={"code": "abc", "redirect_uri": "javascript:alert(1)"},
    )

    assert response.status_code == 200
    assert "javascript:" not in response.text
    assert "Continue" not in response.text


@pytest.mark.asyncio
async def test_community_reinstall_updates_token_in_place(client: AsyncClient, db, graph):
    graph.add("GET", "community", {"id": "9001", "name": "Acme"})

    graph.add("GET", "oauth/access_token", token_response("first-token"))
    await client.get("/community_install", params={"code": "one"})

    graph.add("GET", "community", {"id": "9001", "name": "Acme Renamed"})
    graph.add("GET", "oauth/access_token", token_response("second-token"))
    response = await client.get("/community_install", params={"code": "two"})

    assert response.status_code == 200
    db.expire_all()
    communities = db.query(Community).all()
    assert len(communities) == 1
    assert communities[0].access_token == "second-token"
    assert communities[0].name == "Acme"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/community_install", "/page_install"])
async def test_install_without_code_is_rejected(client: AsyncClient, graph, path):
    response = await client.get(path)

    assert response.status_code == 400
    assert "No code received." in response.text
    assert graph.requests == []


@pytest.mark.asyncio
async def test_token_exchange_failure_surfaces_as_bad_gateway(client: AsyncClient, db, graph):
    graph.add("GET", "oauth/access_token", {"error": {"message": "bad code"}}, status_code=400)

    response = await client.get("/community_install", params={"code": "expired"})

    assert response.status_code == 502
    assert db.query(Community).count() == 0
    assert len(graph.calls("GET", "oauth/access_token")) == 1


@pytest.mark.asyncio
async def test_page_install_records_page_and_community(client: AsyncClient, db, graph):
    graph.add("GET", "oauth/access_token", token_response("page-token"))
    graph.add("GET", "me", {"id": "555", "name": "Help Desk Bot"})
    graph.add(
        "GET",
        "community",
        {"id": "9001", "name": "Acme", "install": {"id": "install-1"}},
    )

    response = await client.get("/page_install", params={"code": "abc", "state": "nonce"})

    assert response.status_code == 200
    assert "Help Desk Bot" in response.text

    page = db.get(Page, "555")
    assert page.access_token == "page-token"
    assert page.community_id == "9001"
    assert page.community_name == "Acme"
    assert page.install_id == "install-1"

    exchange = graph.calls("GET", "oauth/access_token")[0]
    assert exchange.url.params["redirect_uri"] == "https://console.test/page_install"
    for request in graph.calls("GET", "me") + graph.calls("GET", "community"):
        assert request.url.params["access_token"] == "page-token"


@pytest.mark.asyncio
async def test_page_install_persists_nothing_when_metadata_fails(client: AsyncClient, db, graph):
    graph.add("GET", "oauth/access_token", token_response("page-token"))
    graph.add("GET", "me", {"id": "555", "name": "Help Desk Bot"})
    graph.add("GET", "community", {"error": {"message": "boom"}}, status_code=500)

    response = await client.get("/page_install", params={"code": "abc"})

    assert response.status_code == 502
    assert db.query(Page).count() == 0


@pytest.mark.asyncio
async def test_user_install_with_identity_token(client: AsyncClient, make_id_token):
    response = await client.get("/user_install", params={"id_token": make_id_token(sub="4242")})

    assert response.status_code == 200
    assert "4242" in response.text


@pytest.mark.asyncio
async def test_user_install_with_unknown_key(client: AsyncClient, make_id_token):
    response = await client.get("/user_install", params={"id_token": make_id_token(kid="nope")})

    assert response.status_code == 400
    assert "nope" in response.text


@pytest.mark.asyncio
async def test_user_install_with_code_verifies_returned_token(
    client: AsyncClient, graph, make_id_token
):
    id_token = make_id_token(sub="31337")
    graph.add("GET", "oauth/access_token", {"access_token": "user-token", "id_token": id_token})

    response = await client.get("/user_install", params={"code": "xyz"})

    assert response.status_code == 200
    assert "xyz" in response.text
    assert "31337" in response.text

    exchange = graph.calls("GET", "oauth/access_token")[0]
    assert exchange.url.params["grant_type"] == "authorization_code"
    assert exchange.url.params["redirect_uri"] == "https://console.test/user_install"


@pytest.mark.asyncio
async def test_user_install_with_code_rejects_forged_token(
    client: AsyncClient, graph, make_id_token
):
    graph.add(
        "GET",
        "oauth/access_token",
        {"access_token": "user-token", "id_token": make_id_token(aud="someone-else")},
    )

    response = await client.get("/user_install", params={"code": "xyz"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_user_install_without_token_or_code(client: AsyncClient):
    response = await client.get("/user_install")

    assert response.status_code == 400
    assert "Expected either an id_token or code." in response.text
