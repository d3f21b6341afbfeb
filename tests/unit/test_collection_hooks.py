"""SingleCollection and MultipleCollection hook tests (completeness marker, batching, validation)."""

import pytest
from pydantic import BaseModel

from cache_hooks.application.hooks import MultipleCollection, SingleCollection
from cache_hooks.application.use_cases import CacheAside
from cache_hooks.core.constants import COMPLETE_FIELD
from cache_hooks.domain.exceptions import (
    CacheProgrammingError,
    DuplicateIdException,
    ReservedFieldException,
)
from cache_hooks.domain.value_objects import CollectionInfo, OwnerCollectionInfo
from cache_hooks.infrastructure.cache import CacheController, MemoryCacheClient


class User(BaseModel):
    id: int
    name: str


@pytest.fixture
def org_users(cache):
    """Controller addressing the user collection of org 1."""
    return cache.add_prefix("OrgId", 1, "UserId")


async def test_wildcard_read_of_empty_hash_is_incomplete(org_users) -> None:
    hook = SingleCollection(org_users, "*")
    result = await hook.get()
    assert result.val == {}
    assert result.info == CollectionInfo(found=[], not_found="*")
    assert hook.is_incomplete(result.info)


async def test_wildcard_write_marks_complete(org_users, cache) -> None:
    hook = SingleCollection(org_users, "*", key_type=int)
    await hook.set({1: "a", 2: "b"})
    raw = await cache.read_hash_fields("OrgId:1:UserId")
    assert raw == {"1": "a", "2": "b", COMPLETE_FIELD: "*"}

    result = await hook.get()
    assert result.val == {1: "a", 2: "b"}
    assert result.info == CollectionInfo(found=[1, 2], not_found=[])
    assert not hook.is_incomplete(result.info)


async def test_wildcard_write_deletes_then_writes(
    recording_cache, recording_client, monkeypatch
) -> None:
    """The prior hash is removed before members and the marker are written."""
    owner = recording_cache.add_prefix("o")
    await owner.write_hash_fields(value={"stale": 1})
    recording_client.calls.clear()

    seen_before_write: list[dict] = []
    write = recording_client.write_hash_fields

    async def write_after_snapshot(key, value, ttl):
        seen_before_write.append(await recording_client.read_hash_fields(key, "*"))
        await write(key, value, ttl)

    monkeypatch.setattr(recording_client, "write_hash_fields", write_after_snapshot)
    await SingleCollection(owner, "*").set({"a": 1})

    assert recording_client.calls == [
        ("remove_hash_fields", "o", "*"),
        ("read_hash_fields", "o", "*"),
        ("write_hash_fields", "o", None),
    ]
    assert seen_before_write == [{}]
    assert await owner.read_hash_fields() == {"a": 1, COMPLETE_FIELD: "*"}


async def test_wildcard_read_without_marker_is_total_miss(org_users) -> None:
    """Cached members alone do not make a collection complete."""
    await org_users.write_hash_fields(value={"1": "a"})
    hook = SingleCollection(org_users, "*", key_type=int)
    result = await hook.get()
    assert result.val == {1: "a"}
    assert result.info.not_found == "*"
    assert hook.is_incomplete(result.info)


async def test_wildcard_write_replaces_previous_members(org_users) -> None:
    hook = SingleCollection(org_users, "*")
    await hook.set({"a": 1, "b": 2})
    await hook.set({"c": 3})
    assert (await hook.get()).val == {"c": 3}


async def test_explicit_partial_miss_produces_only_missing(org_users) -> None:
    """Cached a; request [a, b, c]; the producer runs once for [b, c]."""
    await org_users.write_hash_fields(value={"a": "A"})
    calls: list[list[str]] = []

    async def load(ids: list[str]) -> dict[str, str]:
        calls.append(list(ids))
        return {i: i.upper() for i in ids}

    fetch = CacheAside(
        load,
        get_hook=lambda ids: SingleCollection(org_users, ids),
        update_input=lambda ids, info: info.not_found,
    )
    assert await fetch(["a", "b", "c"]) == {"a": "A", "b": "B", "c": "C"}
    assert calls == [["b", "c"]]

    assert await fetch(["a", "b", "c"]) == {"a": "A", "b": "B", "c": "C"}
    assert calls == [["b", "c"]]


async def test_explicit_read_does_not_need_marker(org_users) -> None:
    await org_users.write_hash_fields(value={"a": 1, "b": 2})
    result = await SingleCollection(org_users, ["a", "b"]).get()
    assert result.info == CollectionInfo(found=["a", "b"], not_found=[])


async def test_reserved_field_rejected_before_storage(
    recording_cache, recording_client
) -> None:
    with pytest.raises(ReservedFieldException) as exc_info:
        SingleCollection(recording_cache, ["a", COMPLETE_FIELD])
    assert exc_info.value.error_code == "RESERVED_FIELD"
    with pytest.raises(ReservedFieldException):
        MultipleCollection(recording_cache, [(1, [COMPLETE_FIELD])])
    assert recording_client.calls == []


async def test_reserved_field_in_output_rejected(recording_cache, recording_client) -> None:
    hook = SingleCollection(recording_cache.add_prefix("o"), "*")
    with pytest.raises(ReservedFieldException):
        await hook.set({"a": 1, COMPLETE_FIELD: "x"})
    assert recording_client.count("write_hash_fields") == 0
    assert recording_client.count("remove_hash_fields") == 0


def test_duplicate_sub_ids_rejected() -> None:
    cache = CacheController(MemoryCacheClient())
    with pytest.raises(DuplicateIdException) as exc_info:
        SingleCollection(cache, ["a", "b", "a"])
    assert exc_info.value.details == {"ids": ["a"]}
    with pytest.raises(DuplicateIdException):
        SingleCollection(cache, [1, "1"])
    with pytest.raises(DuplicateIdException) as exc_info:
        MultipleCollection(cache, [(7, ["x", "x"])])
    assert exc_info.value.details == {"ids": ["x"], "owner": 7}


def test_bare_string_sub_ids_rejected() -> None:
    with pytest.raises(CacheProgrammingError):
        SingleCollection(CacheController(MemoryCacheClient()), "abc")


def test_repeated_owners_are_folded() -> None:
    """Explicit lists are unioned; a wildcard absorbs explicit lists for its owner."""
    cache = CacheController(MemoryCacheClient())
    hook = MultipleCollection(
        cache,
        [(1, ["a"]), (2, ["x"]), (1, ["b", "a"]), (3, ["m"]), (3, "*"), (4, "*"), (4, ["z"])],
    )
    assert hook.locs == [(1, ["a", "b"]), (2, ["x"]), (3, "*"), (4, "*")]


async def test_multiple_collection_one_read_per_owner(
    recording_cache, recording_client
) -> None:
    hook = MultipleCollection(
        recording_cache.add_prefix("OrgId"), [(1, ["a"]), (2, "*"), (1, ["b"])]
    )
    await hook.get()
    assert recording_client.count("read_hash_fields") == 2
    reads = {key: fields for op, key, fields in recording_client.calls if op == "read_hash_fields"}
    assert reads == {"OrgId:1": ["a", "b"], "OrgId:2": "*"}


async def test_owner_spellings_share_one_read(recording_cache, recording_client) -> None:
    """1 and "1" address the same hash, so they fold into one owner and one read."""
    hook = MultipleCollection(recording_cache.add_prefix("OrgId"), [(1, ["a"]), ("1", ["b"])])
    assert hook.locs == [(1, ["a", "b"])]
    result = await hook.get()
    assert list(result.val) == [1]
    reads = [key for op, key, _ in recording_client.calls if op == "read_hash_fields"]
    assert reads == ["OrgId:1"]


async def test_wildcard_absorbs_other_owner_spelling(cache) -> None:
    """A wildcard for 1 absorbs an explicit list for "1"; no member lands outside the full write."""
    orgs = cache.add_prefix("OrgId")
    hook = MultipleCollection(orgs, [(1, "*"), ("1", ["x"])])
    assert hook.locs == [(1, "*")]
    await hook.set({1: {"a": "A"}, "1": {"b": "B"}})
    assert await orgs.read_hash_fields(1) == {"a": "A", "b": "B", COMPLETE_FIELD: "*"}


async def test_multiple_collection_round_trip(cache) -> None:
    orgs = cache.add_prefix("OrgId")
    await orgs.write_hash_fields(1, value={"a": "A"})
    hook = MultipleCollection(orgs, [(1, ["a", "b"]), (2, "*")])

    result = await hook.get()
    assert result.val == {1: {"a": "A"}, 2: {}}
    assert result.info == [
        OwnerCollectionInfo(id=1, found=["a"], not_found=["b"]),
        OwnerCollectionInfo(id=2, found=[], not_found="*"),
    ]
    assert hook.is_incomplete(result.info)

    merged = hook.merge(result.val, {1: {"b": "B"}, 2: {"x": "X"}})
    assert merged == {1: {"a": "A", "b": "B"}, 2: {"x": "X"}}
    assert result.val == {1: {"a": "A"}, 2: {}}
    await hook.set(merged)

    result = await hook.get()
    assert result.val == {1: {"a": "A", "b": "B"}, 2: {"x": "X"}}
    assert not hook.is_incomplete(result.info)


async def test_multiple_collection_exists(cache) -> None:
    await cache.write_hash_fields(1, value={"a": 1})
    info = await MultipleCollection(cache, [(1, ["a", "b"])]).exists()
    assert info == [OwnerCollectionInfo(id=1, found=["a"], not_found=["b"])]


async def test_explicit_set_writes_only_requested_ids(org_users) -> None:
    hook = SingleCollection(org_users, ["a"])
    await hook.set({"a": 1, "b": 2})
    assert await org_users.read_hash_fields() == {"a": 1}


async def test_explicit_set_if_exists_skips_absent_members(org_users) -> None:
    await org_users.write_hash_fields(value={"a": 1})
    hook = SingleCollection(org_users, ["a", "b"])
    await hook.set({"a": 10, "b": 20}, if_exists=True)
    assert await org_users.read_hash_fields() == {"a": 10}


async def test_wildcard_set_if_exists_on_incomplete_clears_hash(org_users) -> None:
    await org_users.write_hash_fields(value={"a": 1})
    await SingleCollection(org_users, "*").set({"a": 2, "b": 3}, if_exists=True)
    assert await org_users.read_hash_fields() == {}


async def test_wildcard_set_if_exists_on_complete_rewrites(org_users) -> None:
    hook = SingleCollection(org_users, "*")
    await hook.set({"a": 1})
    await hook.set({"a": 2, "b": 3}, if_exists=True)
    result = await hook.get()
    assert result.val == {"a": 2, "b": 3}
    assert not hook.is_incomplete(result.info)


async def test_explicit_delete_drops_completeness(org_users) -> None:
    full = SingleCollection(org_users, "*", key_type=int)
    await full.set({1: "a", 2: "b"})
    await SingleCollection(org_users, [1], key_type=int).delete()
    result = await full.get()
    assert result.val == {2: "b"}
    assert result.info.not_found == "*"


async def test_wildcard_delete_removes_hash(org_users) -> None:
    await SingleCollection(org_users, "*").set({"a": 1})
    await SingleCollection(org_users, "*").delete()
    assert await org_users.exists_hash_fields() == {}


async def test_wildcard_exists(org_users) -> None:
    hook = SingleCollection(org_users, "*", key_type=int)
    assert await hook.exists() == CollectionInfo(found=[], not_found="*")
    await hook.set({1: "a"})
    assert await hook.exists() == CollectionInfo(found=[1], not_found=[])


async def test_safe_read_discarding_member_drops_completeness(org_users) -> None:
    hook = SingleCollection(org_users, "*", schema=User, key_type=int)
    await hook.set({1: User(id=1, name="Ada"), 2: User(id=2, name="Bob")})
    await org_users.write_hash_fields(value={"2": {"broken": True}})

    unsafe = await hook.get()
    assert not hook.is_incomplete(unsafe.info)

    result = await hook.get(safe=True)
    assert result.val == {1: User(id=1, name="Ada")}
    assert result.info == CollectionInfo(found=[1], not_found="*")


async def test_unparseable_member_id(org_users) -> None:
    """Field names that do not parse as key_type are skipped; safe reads also drop completeness."""
    hook = SingleCollection(org_users, "*", schema=int, key_type=int)
    await hook.set({1: 10})
    await org_users.write_hash_fields(value={"oops": 5})

    result = await hook.get()
    assert result.val == {1: 10}
    assert not hook.is_incomplete(result.info)

    result = await hook.get(safe=True)
    assert result.val == {1: 10}
    assert hook.is_incomplete(result.info)
