import pytest

from app.core.exceptions import InvalidMove, InvalidRequest, NotFound, ParentNotFound
from app.services.cascade import CascadeService
from app.services.hierarchy import HierarchyStore
from app.services.integrity import IntegrityService


def test_move_type_to_model_of_another_brand(seeded):
    result = CascadeService(seeded).move("type", 201, 102, "model")

    store = HierarchyStore(seeded)
    vehicle_type = store.get("types", 201)
    assert vehicle_type.model_id == 102
    assert vehicle_type.brand_id == 2
    assert store.get("engines", 301).model_id == 102
    assert result["updated"] == {"model_id": 102, "brand_id": 2}
    assert result["descendants_updated"] == {"engines": 1}


def test_move_model_into_group_of_another_brand(seeded):
    result = CascadeService(seeded).move("model", 101, 11, "group")

    store = HierarchyStore(seeded)
    model = store.get("models", 101)
    assert (model.group_id, model.brand_id) == (11, 2)
    assert store.get("types", 201).brand_id == 2
    assert result["updated"] == {"group_id": 11, "brand_id": 2}


def test_move_model_directly_under_brand_leaves_group(seeded):
    CascadeService(seeded).move("model", 100, 2, "brand")

    store = HierarchyStore(seeded)
    model = store.get("models", 100)
    assert model.group_id is None
    assert model.brand_id == 2
    assert store.get("types", 200).brand_id == 2


def test_move_engine_to_another_type(seeded):
    result = CascadeService(seeded).move("engine", 300, 202, "type")

    engine = HierarchyStore(seeded).get("engines", 300)
    assert (engine.type_id, engine.model_id) == (202, 102)
    assert result["updated"] == {"type_id": 202, "model_id": 102}


def test_tree_is_consistent_after_moves(seeded):
    service = CascadeService(seeded)
    service.move("model", 101, 11, "group")
    service.move("type", 200, 101, "model")
    service.move("engine", 302, 201, "type")

    assert IntegrityService(seeded).check() == {"ok": True, "violations": []}


def test_invalid_pair_mutates_nothing(seeded):
    before = HierarchyStore(seeded).dump()

    with pytest.raises(InvalidMove):
        CascadeService(seeded).move("model", 5, 9, "engine")

    assert HierarchyStore(seeded).dump() == before


@pytest.mark.parametrize(
    "args",
    [
        (None, 100, 11, "group"),
        ("model", None, 11, "group"),
        ("model", 100, "", "group"),
        ("model", 100, 11, None),
    ],
)
def test_missing_fields(seeded, args):
    with pytest.raises(InvalidRequest):
        CascadeService(seeded).move(*args)


def test_missing_item(seeded):
    with pytest.raises(NotFound) as exc_info:
        CascadeService(seeded).move("type", 999, 100, "model")
    assert exc_info.value.code == "NOT_FOUND"


def test_missing_target(seeded):
    with pytest.raises(ParentNotFound):
        CascadeService(seeded).move("type", 200, 999, "model")

    assert HierarchyStore(seeded).get("types", 200).model_id == 100
