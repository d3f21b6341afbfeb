"""Collection hooks: one-to-many cache entries (an owner's hash of members).

Each owner is one hash; each member is one field. A request names either
explicit member ids or "*" for the whole collection. The reserved field "$"
is written only by a full ("*") write and marks the hash as complete: a
wildcard read without it is a total miss even when some members are cached,
because members outside the cached set may exist.

Example:
    hook = SingleCollection(
        cache.add_prefix("OrgId", org_id, "UserId"), sub_ids="*", schema=User, key_type=int
    )
    result = await hook.get()
    if hook.is_incomplete(result.info):
        users = await load_users(org_id, exclude=result.info.found)
        result.val = hook.merge(result.val, users)
        await hook.set(result.val)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from cache_hooks.application.hooks.base import Hook, check_sub_ids, resolve
from cache_hooks.core.constants import ALL_FIELDS, COMPLETE_FIELD, COMPLETE_MARKER
from cache_hooks.domain.exceptions import ReservedFieldException
from cache_hooks.domain.value_objects import (
    AllFields,
    CollectionInfo,
    HookResult,
    Key,
    MultipleCollectionInfo,
    OwnerCollectionInfo,
)

if TYPE_CHECKING:
    from cache_hooks.infrastructure.cache.controller import CacheController

Members = dict[Key, Any]
SubIds = Sequence[Key] | AllFields


class _CollectionHook(Hook[Any, Any]):
    """Shared read/write logic for one owner hash at `key` (None = controller prefix)."""

    def __init__(self, cache: CacheController, schema: Any, key_type: Any) -> None:
        super().__init__(cache, schema)
        self.key_type = key_type
        self._key_adapter: TypeAdapter[Any] = TypeAdapter(key_type)

    def _parse_sub_id(self, name: str) -> Key | None:
        try:
            return self._key_adapter.validate_python(name)
        except ValidationError:
            return None

    async def _exists_owner(
        self, key: Key | None, sub_ids: list[Key] | AllFields
    ) -> CollectionInfo:
        res = await self.cache.exists_hash_fields(key, fields=sub_ids)
        complete = res.pop(COMPLETE_FIELD, False)
        if sub_ids != ALL_FIELDS:
            return CollectionInfo(
                found=[s for s in sub_ids if res.get(str(s))],
                not_found=[s for s in sub_ids if not res.get(str(s))],
            )
        found = [self._parse_sub_id(name) for name, ok in res.items() if ok]
        return CollectionInfo(
            found=[s for s in found if s is not None],
            not_found=[] if complete else ALL_FIELDS,
        )

    async def _read_owner(
        self, key: Key | None, sub_ids: list[Key] | AllFields, safe: bool
    ) -> tuple[Members, CollectionInfo]:
        res = await self.cache.read_hash_fields(key, fields=sub_ids)
        marker = res.pop(COMPLETE_FIELD, None)
        if sub_ids != ALL_FIELDS:
            val = {s: res[str(s)] for s in sub_ids if str(s) in res}
            if safe:
                val = self._validate_members(val)
            return val, CollectionInfo(
                found=[s for s in sub_ids if s in val],
                not_found=[s for s in sub_ids if s not in val],
            )
        complete = marker == COMPLETE_MARKER
        val = {}
        for name, member in res.items():
            sub_id = self._parse_sub_id(name)
            if sub_id is None:
                if safe:
                    complete = False
                continue
            val[sub_id] = member
        if safe:
            validated = self._validate_members(val)
            if len(validated) != len(val):
                # A discarded member means the hash no longer holds the whole collection.
                complete = False
            val = validated
        return val, CollectionInfo(
            found=list(val), not_found=[] if complete else ALL_FIELDS
        )

    def _validate_members(self, members: Members) -> Members:
        validated = {s: self._validate(v) for s, v in members.items()}
        return {s: v for s, v in validated.items() if v is not None}

    def _encode_members(self, members: Mapping[Key, Any]) -> dict[Key, Any]:
        encoded: dict[Key, Any] = {}
        for sub_id, member in members.items():
            if str(sub_id) == COMPLETE_FIELD:
                raise ReservedFieldException(COMPLETE_FIELD)
            if member is not None:
                encoded[sub_id] = self._encode(member)
        return encoded

    async def _write_owner(
        self,
        key: Key | None,
        sub_ids: list[Key] | AllFields,
        members: Mapping[Key, Any],
        info: CollectionInfo | None,
    ) -> None:
        """Write one owner's members; `info` is the if_exists snapshot, if any."""
        if sub_ids == ALL_FIELDS:
            if info is not None and info.not_found == ALL_FIELDS:
                await self.cache.remove_hash_fields(key)
                return
            encoded = self._encode_members(members)
            # Delete before write: the new hash must not keep members absent from output.
            await self.cache.remove_hash_fields(key)
            await self.cache.write_hash_fields(
                key, value={**encoded, COMPLETE_FIELD: COMPLETE_MARKER}
            )
            return
        requested = {s: members[s] for s in sub_ids if s in members}
        if info is not None:
            for s in info.not_found:
                requested.pop(s, None)
        encoded = self._encode_members(requested)
        if encoded:
            await self.cache.write_hash_fields(key, value=encoded)

    async def _delete_owner(
        self, key: Key | None, sub_ids: list[Key] | AllFields
    ) -> None:
        if sub_ids == ALL_FIELDS:
            await self.cache.remove_hash_fields(key)
        else:
            # Removing any member invalidates completeness as well.
            await self.cache.remove_hash_fields(
                key, fields=[*sub_ids, COMPLETE_FIELD]
            )


class SingleCollection(_CollectionHook):
    """Hook over one owner's hash, addressed by the controller prefix.

    Args:
        cache: Controller namespaced to the owner.
        sub_ids: Explicit member ids, or "*" for the whole collection.
        schema: Optional element type for safe reads and JSON dumping.
        key_type: Type of member ids, used to parse field names on wildcard reads.

    Raises:
        ReservedFieldException: "$" is among sub_ids.
        DuplicateIdException: A member id is requested twice.
    """

    def __init__(
        self,
        cache: CacheController,
        sub_ids: SubIds,
        schema: Any = None,
        key_type: Any = str,
    ) -> None:
        super().__init__(cache, schema, key_type)
        self.sub_ids = check_sub_ids(sub_ids)

    def is_incomplete(self, info: CollectionInfo) -> bool:
        return info.is_incomplete

    async def exists(self) -> CollectionInfo:
        return await self._exists_owner(None, self.sub_ids)

    async def get(self, safe: bool = False) -> HookResult[Members, CollectionInfo]:
        val, info = await self._read_owner(None, self.sub_ids, safe)
        return HookResult(val=val, info=info)

    async def set(
        self,
        output: Mapping[Key, Any] | Awaitable[Mapping[Key, Any]],
        if_exists: bool = False,
    ) -> None:
        members = await resolve(output)
        info = await self.exists() if if_exists else None
        await self._write_owner(None, self.sub_ids, members or {}, info)

    async def delete(self) -> None:
        await self._delete_owner(None, self.sub_ids)

    def merge(self, target: Members, extension: Members) -> Members:
        return {**target, **extension}


class MultipleCollection(_CollectionHook):
    """Hook over many owners' hashes, each addressed as prefix + owner id.

    Repeated owners (compared by string form) are folded into one request:
    explicit lists are unioned and a "*" for an owner absorbs any explicit
    list for it. The first spelling of an owner id is the one reported.
    Storage cost is one call per distinct owner.

    Args:
        cache: Controller whose prefix holds all owners.
        locs: (owner id, sub ids) pairs; sub ids are a list or "*".
        schema: Optional element type for safe reads and JSON dumping.
        key_type: Type of member ids.
    """

    def __init__(
        self,
        cache: CacheController,
        locs: Iterable[tuple[Key, SubIds]],
        schema: Any = None,
        key_type: Any = str,
    ) -> None:
        super().__init__(cache, schema, key_type)
        owners: dict[str, Key] = {}
        merged: dict[str, list[Key] | AllFields] = {}
        for owner, sub_ids in locs:
            requested = check_sub_ids(sub_ids, owner)
            name = str(owner)
            owners.setdefault(name, owner)
            current = merged.get(name)
            if current is None or requested == ALL_FIELDS:
                merged[name] = requested
            elif current != ALL_FIELDS:
                known = {str(s) for s in current}
                merged[name] = [*current, *(s for s in requested if str(s) not in known)]
        self.locs: list[tuple[Key, list[Key] | AllFields]] = [
            (owners[name], sub_ids) for name, sub_ids in merged.items()
        ]

    def is_incomplete(self, info: MultipleCollectionInfo) -> bool:
        return any(i.is_incomplete for i in info)

    async def exists(self) -> MultipleCollectionInfo:
        infos = await asyncio.gather(
            *(self._exists_owner(owner, sub_ids) for owner, sub_ids in self.locs)
        )
        return [
            OwnerCollectionInfo(id=owner, found=i.found, not_found=i.not_found)
            for (owner, _), i in zip(self.locs, infos)
        ]

    async def get(
        self, safe: bool = False
    ) -> HookResult[dict[Key, Members], MultipleCollectionInfo]:
        results = await asyncio.gather(
            *(self._read_owner(owner, sub_ids, safe) for owner, sub_ids in self.locs)
        )
        val: dict[Key, Members] = {}
        info: MultipleCollectionInfo = []
        for (owner, _), (members, owner_info) in zip(self.locs, results):
            val[owner] = members
            info.append(
                OwnerCollectionInfo(
                    id=owner, found=owner_info.found, not_found=owner_info.not_found
                )
            )
        return HookResult(val=val, info=info)

    async def set(
        self,
        output: Mapping[Key, Mapping[Key, Any]] | Awaitable[Mapping[Key, Mapping[Key, Any]]],
        if_exists: bool = False,
    ) -> None:
        data: dict[str, dict[Key, Any]] = {}
        for owner, members in (await resolve(output) or {}).items():
            data.setdefault(str(owner), {}).update(members or {})
        snapshot = {str(i.id): i for i in await self.exists()} if if_exists else {}
        await asyncio.gather(
            *(
                self._write_owner(
                    owner, sub_ids, data.get(str(owner), {}), snapshot.get(str(owner))
                )
                for owner, sub_ids in self.locs
            )
        )

    async def delete(self) -> None:
        await asyncio.gather(
            *(self._delete_owner(owner, sub_ids) for owner, sub_ids in self.locs)
        )

    def merge(
        self, target: dict[Key, Members], extension: dict[Key, Members]
    ) -> dict[Key, Members]:
        merged = {owner: dict(members) for owner, members in target.items()}
        for owner, members in extension.items():
            merged.setdefault(owner, {}).update(members)
        return merged
