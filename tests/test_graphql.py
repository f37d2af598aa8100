"""
GraphQL API tests, posted to ``/graphql`` through the ASGI transport.

Covers the feed arguments, per-viewer fields (upvoted, hidden, me), the
three mutations and the ``Date`` scalar.
"""
from datetime import datetime, timezone

import pytest
from graphql import IntValueNode, StringValueNode
from httpx import AsyncClient

from hnclone.graphql import schema, validate_schema
from hnclone.graphql.queries import clamp_feed_limit
from hnclone.graphql.scalars import parse_date_literal, parse_date_value, serialize_date
from hnclone.services.news_item_service import to_millis


async def _gql(client: AsyncClient, query: str, variables: dict | None = None, headers: dict | None = None):
    resp = await client.post(
        "/graphql", json={"query": query, "variables": variables or {}}, headers=headers or {}
    )
    assert resp.status_code == 200
    return resp.json()


FEED_IDS = """
query ($type: FeedType!, $first: Int, $skip: Int) {
  feed(type: $type, first: $first, skip: $skip) { id title }
}
"""


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

def test_schema_validates():
    validate_schema()


def test_clamp_feed_limit():
    assert clamp_feed_limit(None) == 30
    assert clamp_feed_limit(0) == 30
    assert clamp_feed_limit(-4) == 30
    assert clamp_feed_limit(31) == 30
    assert clamp_feed_limit(1) == 1
    assert clamp_feed_limit(30) == 30
    assert clamp_feed_limit(12, maximum=10) == 10


# ---------------------------------------------------------------------------
# feed
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_feed_first_is_clamped(async_client: AsyncClient, make_user, make_news_item):
    await make_user("alice")
    for i in range(32):
        await make_news_item(f"Story {i}", age_minutes=i)

    body = await _gql(async_client, FEED_IDS, {"type": "new", "first": 100})
    assert len(body["data"]["feed"]) == 30

    body = await _gql(async_client, FEED_IDS, {"type": "new"})
    assert len(body["data"]["feed"]) == 30

    body = await _gql(async_client, FEED_IDS, {"type": "new", "first": 5, "skip": 30})
    assert [item["title"] for item in body["data"]["feed"]] == ["Story 30", "Story 31"]

    body = await _gql(async_client, FEED_IDS, {"type": "new", "first": 2, "skip": -3})
    assert [item["title"] for item in body["data"]["feed"]] == ["Story 0", "Story 1"]


@pytest.mark.asyncio
async def test_feed_rejects_unknown_type(async_client: AsyncClient):
    resp = await async_client.post("/graphql", json={"query": FEED_IDS, "variables": {"type": "hot"}})
    body = resp.json()
    assert body["errors"]
    assert body.get("data") is None


@pytest.mark.asyncio
async def test_feed_fields(async_client: AsyncClient, make_user, make_news_item, make_comment):
    await make_user("alice", karma=42)
    item = await make_news_item("Linked", voters=("alice",), url="https://example.com/x")
    await make_comment(item.id, "nice")

    body = await _gql(async_client, """
        { feed(type: top) {
            id title url submitterId upvoteCount upvotes hides commentCount creationTime
            author { id karma }
        } }
    """)
    [row] = body["data"]["feed"]
    assert row["id"] == item.id
    assert row["url"] == "https://example.com/x"
    assert row["submitterId"] == "alice"
    assert row["upvoteCount"] == 1
    assert row["upvotes"] == ["alice"]
    assert row["hides"] == []
    assert row["commentCount"] == 1
    assert row["creationTime"] == to_millis(item.creation_time)
    assert row["author"] == {"id": "alice", "karma": 42}


@pytest.mark.asyncio
async def test_upvoted_and_hidden_follow_viewer(
    async_client: AsyncClient, make_user, make_news_item, auth_headers
):
    await make_user("alice")
    await make_user("bob")
    item = await make_news_item("Seen differently", voters=("alice",))
    query = "query ($id: Int!) { newsItem(id: $id) { upvoted hidden } }"

    anonymous = await _gql(async_client, query, {"id": item.id})
    assert anonymous["data"]["newsItem"] == {"upvoted": False, "hidden": False}

    alice = await _gql(async_client, query, {"id": item.id}, auth_headers("alice"))
    assert alice["data"]["newsItem"] == {"upvoted": True, "hidden": False}

    await _gql(
        async_client,
        "mutation ($id: Int!) { hideNewsItem(id: $id) { id } }",
        {"id": item.id},
        auth_headers("bob"),
    )
    bob = await _gql(async_client, query, {"id": item.id}, auth_headers("bob"))
    assert bob["data"]["newsItem"] == {"upvoted": False, "hidden": True}


@pytest.mark.asyncio
async def test_invalid_token_is_anonymous(async_client: AsyncClient):
    body = await _gql(async_client, "{ me { id } }", headers={"Authorization": "Bearer not-a-jwt"})
    assert body["data"]["me"] is None


# ---------------------------------------------------------------------------
# newsItem / comment / user / me
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_news_item_not_found(async_client: AsyncClient):
    body = await _gql(async_client, "{ newsItem(id: 404) { id } }")
    assert body["data"]["newsItem"] is None


@pytest.mark.asyncio
async def test_comment_tree(
    async_client: AsyncClient, make_user, make_news_item, make_comment, auth_headers
):
    await make_user("alice")
    await make_user("bob")
    item = await make_news_item("Thread")
    top = await make_comment(item.id, "top", voters=("bob",))
    reply = await make_comment(item.id, "reply", submitter_id="bob", parent_comment_id=top.id)

    body = await _gql(
        async_client,
        """
        query ($id: Int!) {
          newsItem(id: $id) {
            comments { id parent text upvoted author { id } comments { id parent submitterId } }
          }
        }
        """,
        {"id": item.id},
        auth_headers("bob"),
    )
    [top_row] = body["data"]["newsItem"]["comments"]
    assert top_row["id"] == top.id
    assert top_row["parent"] == item.id
    assert top_row["upvoted"] is True
    assert top_row["author"] == {"id": "alice"}
    assert top_row["comments"] == [{"id": reply.id, "parent": top.id, "submitterId": "bob"}]

    body = await _gql(async_client, "query ($id: Int!) { comment(id: $id) { text } }", {"id": reply.id})
    assert body["data"]["comment"] == {"text": "reply"}

    body = await _gql(async_client, "{ comment(id: 999) { id } }")
    assert body["data"]["comment"] is None


@pytest.mark.asyncio
async def test_user_query(async_client: AsyncClient, make_user, make_news_item):
    await make_user("alice", about="Writes code", first_name="Alice", karma=7)
    await make_user("bob")
    post = await make_news_item("Alice's post")
    liked = await make_news_item("Bob's post", submitter_id="bob", voters=("alice",))

    body = await _gql(async_client, """
        { user(id: "alice") {
            id about firstName lastName karma posts likes hides favorites creationTime dateOfBirth
        } }
    """)
    user = body["data"]["user"]
    assert user["id"] == "alice"
    assert user["about"] == "Writes code"
    assert user["firstName"] == "Alice"
    assert user["lastName"] is None
    assert user["karma"] == 7
    assert user["posts"] == [post.id]
    assert user["likes"] == [liked.id]
    assert user["hides"] == []
    assert user["favorites"] == []
    assert isinstance(user["creationTime"], int)
    assert user["dateOfBirth"] is None

    body = await _gql(async_client, '{ user(id: "nobody") { id } }')
    assert body["data"]["user"] is None


@pytest.mark.asyncio
async def test_me(async_client: AsyncClient, make_user, auth_headers):
    await make_user("alice")

    body = await _gql(async_client, "{ me { id } }")
    assert body["data"]["me"] is None

    body = await _gql(async_client, "{ me { id karma } }", headers=auth_headers("alice"))
    assert body["data"]["me"] == {"id": "alice", "karma": 1}


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "mutation, message",
    [
        ("mutation { upvoteNewsItem(id: 1) { id } }", "Must be logged in to vote."),
        ("mutation { hideNewsItem(id: 1) { id } }", "Must be logged in to hide post."),
        ('mutation { submitNewsItem(title: "x") { id } }', "Must be logged in to submit a news item."),
    ],
)
async def test_mutations_require_login(async_client: AsyncClient, mutation: str, message: str):
    body = await _gql(async_client, mutation)
    assert body["errors"][0]["message"] == message


@pytest.mark.asyncio
async def test_upvote_mutation(async_client: AsyncClient, make_user, make_news_item, auth_headers):
    await make_user("alice")
    await make_user("bob")
    item = await make_news_item("Upvote me", voters=("alice",))
    mutation = "mutation ($id: Int!) { upvoteNewsItem(id: $id) { upvoteCount upvotes upvoted } }"

    body = await _gql(async_client, mutation, {"id": item.id}, auth_headers("bob"))
    result = body["data"]["upvoteNewsItem"]
    assert result["upvoteCount"] == 2
    assert sorted(result["upvotes"]) == ["alice", "bob"]
    assert result["upvoted"] is True

    body = await _gql(async_client, mutation, {"id": item.id}, auth_headers("bob"))
    assert body["data"]["upvoteNewsItem"]["upvoteCount"] == 2

    body = await _gql(async_client, mutation, {"id": 9999}, auth_headers("bob"))
    assert body["data"]["upvoteNewsItem"] is None


@pytest.mark.asyncio
async def test_submit_mutation(async_client: AsyncClient, make_user, auth_headers):
    await make_user("alice")
    body = await _gql(
        async_client,
        """
        mutation ($title: String!, $url: String) {
          submitNewsItem(title: $title, url: $url) { id title url submitterId upvoteCount upvoted }
        }
        """,
        {"title": "Show HN: A thing", "url": "https://example.com"},
        auth_headers("alice"),
    )
    created = body["data"]["submitNewsItem"]
    assert created["title"] == "Show HN: A thing"
    assert created["submitterId"] == "alice"
    assert created["upvoteCount"] == 1
    assert created["upvoted"] is True

    body = await _gql(async_client, FEED_IDS, {"type": "show"})
    assert [row["id"] for row in body["data"]["feed"]] == [created["id"]]


@pytest.mark.asyncio
async def test_submit_mutation_rejects_bad_input(async_client: AsyncClient, make_user, auth_headers):
    await make_user("alice")
    mutation = "mutation ($title: String!, $url: String) { submitNewsItem(title: $title, url: $url) { id } }"

    body = await _gql(async_client, mutation, {"title": "   "}, auth_headers("alice"))
    assert "title" in body["errors"][0]["message"]

    body = await _gql(async_client, mutation, {"title": "Ok", "url": "ftp://x"}, auth_headers("alice"))
    assert "url" in body["errors"][0]["message"]

    body = await _gql(async_client, FEED_IDS, {"type": "new"})
    assert body["data"]["feed"] == []


# ---------------------------------------------------------------------------
# Date scalar
# ---------------------------------------------------------------------------

def test_date_parse_value():
    assert parse_date_value(1500) == 1500
    assert parse_date_value(1500.9) == 1500
    assert parse_date_value("1970-01-01T00:00:01Z") == 1000
    with pytest.raises(ValueError):
        parse_date_value(True)
    with pytest.raises(ValueError):
        parse_date_value("yesterday")
    with pytest.raises(ValueError):
        parse_date_value(["1970"])


def test_date_parse_literal():
    assert parse_date_literal(IntValueNode(value="86400000")) == 86_400_000
    assert parse_date_literal(StringValueNode(value="86400000")) is None


def test_date_serialize():
    assert serialize_date(1234) == 1234
    assert serialize_date(to_millis(None)) is None


@pytest.mark.asyncio
async def test_date_scalar_is_bound_in_schema(async_client: AsyncClient):
    body = await _gql(async_client, '{ __type(name: "Date") { name kind description } }')
    assert body["data"]["__type"] == {
        "name": "Date",
        "kind": "SCALAR",
        "description": "UTC number of milliseconds since midnight Jan 1 1970 as in JS date",
    }

    date_type = schema._schema.get_type("Date")
    assert date_type.serialize(datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)) == 1000
    assert date_type.parse_value("1970-01-01T00:00:02Z") == 2000
