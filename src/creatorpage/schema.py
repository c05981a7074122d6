"""
Merge-with-defaults healing.

Whatever arrives from the remote store or the local cache -- a legacy
payload missing whole sections, a half-written leaderboard entry,
a string where a number belongs -- comes out of merge_with_defaults()
as a complete, valid AppData. The function never raises.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Mapping
from typing import Any, Container, Optional

from pydantic import BaseModel, ValidationError

from .defaults import BLANK_ITEMS, DEFAULT_DATA
from .errors import MalformedDataError
from .models import (
    ITEM_MODELS,
    LAST_UPDATED_KEY,
    RECORD_MODELS,
    AppData,
    CollectionKind,
    RecordKind,
    WireModel,
)

logger = logging.getLogger("creatorpage.schema")


def new_item_id(taken: Container[str] = ()) -> str:
    """Generate a collection item id not present in ``taken``."""
    while True:
        candidate = str(uuid.uuid4())[:12]
        if candidate not in taken:
            return candidate


ITEM_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "creatorpage:item")


def healed_item_id(kind: CollectionKind, index: int, taken: Container[str] = ()) -> str:
    """Deterministic id for the item at ``index`` that arrived without a usable one.

    Healing the same payload twice yields the same ids.
    """
    attempt = 0
    while True:
        name = f"{kind.value}:{index}:{attempt}"
        candidate = str(uuid.uuid5(ITEM_ID_NAMESPACE, name))[:12]
        if candidate not in taken:
            return candidate
        attempt += 1


def _as_mapping(raw: Any, what: str) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, BaseModel):
        return raw.model_dump(by_alias=True, mode="json")
    if not isinstance(raw, Mapping):
        raise MalformedDataError(f"{what}: expected a mapping, got {type(raw).__name__}")
    return dict(raw)


def _as_sequence(raw: Any, what: str) -> list[Any]:
    """Read a list, or a Firebase-style ``{"0": ..., "3": ...}`` index map."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, Mapping):
        indexed = []
        for key, value in raw.items():
            try:
                indexed.append((int(key), value))
            except (TypeError, ValueError):
                raise MalformedDataError(f"{what}: non-numeric index {key!r}") from None
        indexed.sort(key=lambda pair: pair[0])
        return [value for _, value in indexed]
    raise MalformedDataError(f"{what}: expected a sequence, got {type(raw).__name__}")


def _wire_keys(model: type[WireModel]) -> dict[str, str]:
    """Map both attribute names and aliases of ``model`` to the alias."""
    keys = {}
    for name, field in model.model_fields.items():
        alias = field.alias or name
        keys[name] = alias
        keys[alias] = alias
    return keys


def _overlay(model: type[WireModel], base: dict[str, Any], raw: Mapping[str, Any]) -> WireModel:
    """Overlay known fields of ``raw`` onto ``base`` and validate.

    A field that fails validation falls back to its ``base`` value.
    ``base`` itself must be valid for ``model``.
    """
    keys = _wire_keys(model)
    candidate = dict(base)
    for key, value in raw.items():
        alias = keys.get(key)
        if alias is not None:
            candidate[alias] = value

    for _ in range(len(candidate) + 1):
        try:
            return model.model_validate(candidate)
        except ValidationError as exc:
            healed = False
            for err in exc.errors():
                if not err["loc"]:
                    continue
                key = err["loc"][0]
                if key in base:
                    if candidate.get(key) != base[key]:
                        candidate[key] = base[key]
                        healed = True
                elif key in candidate:
                    del candidate[key]
                    healed = True
            if not healed:
                raise MalformedDataError(str(exc)) from exc
            logger.debug("Healed invalid %s fields", model.__name__)
    raise MalformedDataError(f"{model.__name__}: could not heal record")


def _merge_record(kind: RecordKind, defaults: AppData, raw: Any) -> WireModel:
    try:
        fields = _as_mapping(raw, kind.value)
    except MalformedDataError as exc:
        logger.debug("Replacing %s with defaults: %s", kind.value, exc)
        fields = {}
    return _overlay(RECORD_MODELS[kind], defaults.record(kind).to_wire(), fields)


def _merge_collection(kind: CollectionKind, defaults: AppData, raw: Any) -> list:
    fallback = defaults.collection(kind)
    try:
        items = _as_sequence(raw, kind.value)
    except MalformedDataError as exc:
        logger.debug("Replacing %s with defaults: %s", kind.value, exc)
        items = []

    model = ITEM_MODELS[kind]
    merged = []
    seen: set[str] = set()
    supplied = {
        str(item["id"]) for item in items
        if isinstance(item, Mapping) and item.get("id") not in (None, "")
    }
    for index, item in enumerate(items):
        if item is None:
            continue
        try:
            fields = _as_mapping(item, f"{kind.value}[{index}]")
        except MalformedDataError as exc:
            logger.debug("Dropping item: %s", exc)
            continue

        if isinstance(fields.get("id"), int) and not isinstance(fields["id"], bool):
            fields["id"] = str(fields["id"])

        if kind.is_ranked and index < len(fallback):
            base = fallback[index].to_wire()
        else:
            base = {**BLANK_ITEMS[kind], "id": ""}

        try:
            entry = _overlay(model, base, fields)
        except MalformedDataError as exc:
            logger.debug("Dropping item: %s", exc)
            continue

        if not entry.id or entry.id in seen:
            entry = entry.model_copy(update={"id": healed_item_id(kind, index, seen | supplied)})
        seen.add(entry.id)
        merged.append(entry)

    if not merged:
        return [item.model_copy(deep=True) for item in fallback]
    return merged


def _merge_stamp(payload: Mapping[str, Any], defaults: AppData) -> int:
    stamp = payload.get(LAST_UPDATED_KEY, payload.get("last_updated"))
    if isinstance(stamp, bool) or not isinstance(stamp, (int, float)):
        return defaults.last_updated
    if (isinstance(stamp, float) and not math.isfinite(stamp)) or stamp < 0:
        return defaults.last_updated
    return int(stamp)


def merge_with_defaults(partial: Any, defaults: Optional[AppData] = None) -> AppData:
    """Heal ``partial`` into a complete AppData.

    Singleton records are overlaid field by field onto the defaults.
    A non-empty sequence replaces the default sequence; leaderboard
    items are first overlaid onto the default item at the same index.
    Idempotent: merging a merged value returns an equal value.

    Args:
        partial: Anything -- a wire dict, an AppData, None, garbage.
        defaults: Base to heal against. Defaults to DEFAULT_DATA.

    Returns:
        AppData: A fully populated value with unique item ids.
    """
    defaults = defaults or DEFAULT_DATA
    try:
        payload = _as_mapping(partial, "AppData")
    except MalformedDataError as exc:
        logger.debug("Upstream value unusable, using defaults: %s", exc)
        payload = {}

    return AppData(
        profile=_merge_record(RecordKind.PROFILE, defaults, payload.get("profile")),
        content=_merge_record(RecordKind.CONTENT, defaults, payload.get("content")),
        stats=_merge_record(RecordKind.STATS, defaults, payload.get("stats")),
        schedule=_merge_collection(CollectionKind.SCHEDULE, defaults, payload.get("schedule")),
        rank=_merge_collection(CollectionKind.RANK, defaults, payload.get("rank")),
        moderators=_merge_collection(CollectionKind.MODERATORS, defaults, payload.get("moderators")),
        gallery=_merge_collection(CollectionKind.GALLERY, defaults, payload.get("gallery")),
        last_updated=_merge_stamp(payload, defaults),
    )
