"""
Structural edits on AppData.

Every operation returns a new AppData and leaves its input untouched,
so the previous snapshot stays valid for anyone still holding it.
Leaderboard collections are renumbered 1..N after any insert or delete.
"""

from __future__ import annotations

import random
from typing import Any

from pydantic import ValidationError

from .defaults import BLANK_ITEMS
from .models import (
    ITEM_MODELS,
    RECORD_MODELS,
    AppData,
    CollectionKind,
    RankItem,
    RecordKind,
    WireModel,
)
from .schema import new_item_id


def _field_names(model: type[WireModel], fields: dict[str, Any], what: str) -> dict[str, Any]:
    """Key ``fields`` by attribute name, accepting wire aliases too.

    Raises:
        ValueError: If a name is not a field of ``model``.
    """
    names = {}
    for name, field in model.model_fields.items():
        names[name] = name
        if field.alias:
            names[field.alias] = name
    unknown = sorted(key for key in fields if key not in names)
    if unknown:
        raise ValueError(f"Unknown {what} field(s): {', '.join(unknown)}")
    return {names[key]: value for key, value in fields.items()}


def renumber_ranks(items: list[RankItem]) -> list[RankItem]:
    """Return copies of ``items`` with ``rank`` set to 1..N in list order."""
    return [item.model_copy(update={"rank": i}) for i, item in enumerate(items, start=1)]


def _with_collection(data: AppData, kind: CollectionKind, items: list) -> AppData:
    if kind.is_ranked:
        items = renumber_ranks(items)
    return data.model_copy(update={kind.value: items}, deep=True)


def add_item(data: AppData, kind: CollectionKind, **fields: Any) -> AppData:
    """Append a new item built from the blank template for ``kind``.

    Args:
        data: Current snapshot.
        kind: Collection to append to.
        **fields: Overrides for the template (wire or attribute names).

    Returns:
        AppData: New snapshot with the item appended under a fresh id.

    Raises:
        ValueError: If an override is unknown or does not validate.
    """
    fields = _field_names(ITEM_MODELS[kind], fields, f"{kind.value} item")
    items = list(data.collection(kind))
    taken = {item.id for item in items}
    template = dict(BLANK_ITEMS[kind])
    if kind is CollectionKind.GALLERY:
        template["src"] = f"{template['src']}?random={random.randint(0, 999)}"

    try:
        item = ITEM_MODELS[kind].model_validate(
            {**template, **fields, "id": new_item_id(taken)}
        )
    except ValidationError as exc:
        raise ValueError(f"Invalid {kind.value} item: {exc}") from exc

    items.append(item)
    return _with_collection(data, kind, items)


def delete_item(data: AppData, kind: CollectionKind, index: int) -> AppData:
    """Remove the item at ``index``.

    Raises:
        IndexError: If ``index`` is out of range.
    """
    items = list(data.collection(kind))
    if not 0 <= index < len(items):
        raise IndexError(f"{kind.value} has no item at index {index}")
    del items[index]
    return _with_collection(data, kind, items)


def update_item(data: AppData, kind: CollectionKind, index: int, **fields: Any) -> AppData:
    """Change fields of one item in place. Its id and rank are kept.

    Raises:
        IndexError: If ``index`` is out of range.
        ValueError: If a field is unknown or a value does not validate.
    """
    items = list(data.collection(kind))
    if not 0 <= index < len(items):
        raise IndexError(f"{kind.value} has no item at index {index}")

    model = ITEM_MODELS[kind]
    fields = _field_names(model, fields, f"{kind.value} item")
    current = items[index]
    merged = {**current.model_dump(), **fields, "id": current.id}
    if kind.is_ranked:
        merged["rank"] = current.rank
    try:
        items[index] = model.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid {kind.value} item: {exc}") from exc
    return data.model_copy(update={kind.value: items}, deep=True)


def update_record(data: AppData, kind: RecordKind, **fields: Any) -> AppData:
    """Change fields of the profile, content or stats record.

    Raises:
        ValueError: If a field is unknown or a value does not validate.
    """
    model = RECORD_MODELS[kind]
    fields = _field_names(model, fields, kind.value)
    try:
        record = model.model_validate({**data.record(kind).model_dump(), **fields})
    except ValidationError as exc:
        raise ValueError(f"Invalid {kind.value}: {exc}") from exc
    return data.model_copy(update={kind.value: record}, deep=True)
