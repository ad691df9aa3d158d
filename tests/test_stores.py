"""Dealer store tests: SQL, Redis and the draft-routing store."""

from datetime import datetime, timedelta, timezone

from dealer_studio.database.stores import RoutingDealerStore
from dealer_studio.models.domain.dealer import Dealer, Outfit

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_dealer(dealer_id: str, minutes: int = 0, **overrides) -> Dealer:
    created = BASE_TIME + timedelta(minutes=minutes)
    fields = {
        "id": dealer_id,
        "name": "Sophia",
        "personality": "Elegant & Sophisticated",
        "model": "DALL·E 3",
        "created_at": created,
        "updated_at": created,
        "outfits": [
            Outfit(id="o1", stage=1, name="Casino Uniform", image_url="https://x/1.png")
        ],
    }
    fields.update(overrides)
    return Dealer(**fields)


async def test_sql_store_round_trip(sql_store):
    dealer = make_dealer("abc")

    await sql_store.put(dealer)

    assert await sql_store.get("abc") == dealer
    assert await sql_store.get("missing") is None


async def test_sql_store_put_overwrites(sql_store):
    await sql_store.put(make_dealer("abc"))
    changed = make_dealer("abc", is_premium=True, outfits=[])

    await sql_store.put(changed)

    stored = await sql_store.get("abc")
    assert stored.is_premium is True
    assert stored.outfits == []
    assert len(await sql_store.list()) == 1


async def test_sql_store_delete(sql_store):
    await sql_store.put(make_dealer("abc"))

    assert await sql_store.delete("abc") is True
    assert await sql_store.delete("abc") is False
    assert await sql_store.get("abc") is None


async def test_sql_store_lists_oldest_first(sql_store):
    await sql_store.put(make_dealer("late", minutes=10))
    await sql_store.put(make_dealer("early", minutes=0))
    await sql_store.put(make_dealer("middle", minutes=5))

    assert [d.id for d in await sql_store.list()] == ["early", "middle", "late"]


async def test_redis_store_round_trip(redis_store):
    dealer = make_dealer("new-abc")

    await redis_store.put(dealer)

    assert await redis_store.get("new-abc") == dealer
    assert await redis_store.get("new-missing") is None
    assert await redis_store.client.ttl("dealer:new-abc") > 0


async def test_redis_store_delete_and_list(redis_store):
    await redis_store.put(make_dealer("new-b", minutes=2))
    await redis_store.put(make_dealer("new-a", minutes=1))

    assert [d.id for d in await redis_store.list()] == ["new-a", "new-b"]
    assert await redis_store.delete("new-a") is True
    assert await redis_store.delete("new-a") is False
    assert [d.id for d in await redis_store.list()] == ["new-b"]


async def test_routing_sends_drafts_to_ephemeral(store, sql_store, redis_store):
    await store.put(make_dealer("new-draft"))
    await store.put(make_dealer("durable"))

    assert await redis_store.get("new-draft") is not None
    assert await sql_store.get("new-draft") is None
    assert await sql_store.get("durable") is not None
    assert await redis_store.get("durable") is None
    assert (await store.get("new-draft")).id == "new-draft"


async def test_routing_delete_clears_both(store, sql_store, redis_store):
    # A stale durable copy under a draft id must not survive deletion
    await sql_store.put(make_dealer("new-x"))
    await redis_store.put(make_dealer("new-x"))

    assert await store.delete("new-x") is True

    assert await sql_store.get("new-x") is None
    assert await redis_store.get("new-x") is None
    assert await store.delete("new-x") is False


async def test_routing_list_merges_in_creation_order(store):
    await store.put(make_dealer("c", minutes=3))
    await store.put(make_dealer("new-b", minutes=2))
    await store.put(make_dealer("a", minutes=1))

    assert [d.id for d in await store.list()] == ["a", "new-b", "c"]


async def test_routing_without_ephemeral_uses_durable(sql_store):
    store = RoutingDealerStore(sql_store)

    await store.put(make_dealer("new-draft"))

    assert await sql_store.get("new-draft") is not None
    assert [d.id for d in await store.list()] == ["new-draft"]
