import pytest

from app.core.exceptions import InvalidRequest, NotFound, ParentNotFound
from app.models.audit import AuditLog
from app.services.audit import AuditService
from app.services.cascade import CascadeService
from app.services.catalog import CatalogService
from app.services.hierarchy import HierarchyStore

API = "/api/v1/admin"


def test_record_versions_per_document(seeded):
    audit = AuditService(seeded)
    audit.record("brands", 1, "update", before={"name": "BMW"}, after={"name": "BMW M"})
    audit.record("brands", 1, "update", before={"name": "BMW M"}, after={"name": "BMW"})
    audit.record("brands", 2, "update", before={"name": "Audi"}, after={"name": "Audi"})
    seeded.commit()

    assert [e.version for e in audit.list(collection="brands", document_id=1)] == [2, 1]
    entry = audit.list(document_id=2)[0]
    assert entry.version == 1
    assert entry.changes is None


def test_rollback_renamed_brand(seeded):
    CatalogService(seeded, "tester").update("brand", 2, {"name": "Audi Sport"})

    result = AuditService(seeded).rollback("brands", 2, 1, "tester")

    assert HierarchyStore(seeded).get("brands", 2).name == "Audi"
    assert result["target_version"] == 1
    assert result["document"]["name"] == "Audi"

    entry = seeded.query(AuditLog).filter(AuditLog.collection == "brands", AuditLog.document_id == 2) \
        .order_by(AuditLog.version.desc()).first()
    assert entry.version == 2
    assert entry.action == "update"
    assert entry.changed_by == "tester"
    assert entry.changes["name"] == {"from": "Audi Sport", "to": "Audi"}
    assert entry.details == {"rollback": True, "target_version": 1}


def test_rollback_of_move_rederives_descendants(seeded):
    CascadeService(seeded).move("type", 201, 102, "model")

    AuditService(seeded).rollback("type", 201, 1)

    store = HierarchyStore(seeded)
    vehicle_type = store.get("types", 201)
    assert vehicle_type.model_id == 101
    assert vehicle_type.brand_id == 1
    assert store.get("engines", 301).model_id == 101


def test_rollback_stage_recomputes_gain(seeded):
    CatalogService(seeded).update("stage", 403, {"tuned_hp": 300, "price": 950})

    AuditService(seeded).rollback("stages", 403, 1)

    stage = HierarchyStore(seeded).get("stages", 403)
    assert (stage.tuned_hp, stage.gain_hp, stage.price) == (260, 76, 800)


def test_rollback_missing_version(seeded):
    CatalogService(seeded).update("brand", 2, {"name": "Audi Sport"})

    with pytest.raises(NotFound):
        AuditService(seeded).rollback("brands", 2, 7)

    assert HierarchyStore(seeded).get("brands", 2).name == "Audi Sport"


def test_rollback_version_without_previous_state(seeded):
    brand = CatalogService(seeded).create("brand", {"name": "Porsche"})

    with pytest.raises(NotFound):
        AuditService(seeded).rollback("brands", brand.id, 1)


def test_rollback_of_deleted_document(seeded):
    CatalogService(seeded).update("engine", 301, {"name": "320d"})
    CascadeService(seeded).delete("engine", 301)

    with pytest.raises(NotFound):
        AuditService(seeded).rollback("engines", 301, 1)


def test_rollback_to_parent_that_no_longer_exists(seeded):
    CascadeService(seeded).move("type", 201, 102, "model")
    CascadeService(seeded).delete("model", 101)

    with pytest.raises(ParentNotFound):
        AuditService(seeded).rollback("types", 201, 1)

    assert HierarchyStore(seeded).get("types", 201).model_id == 102


@pytest.mark.parametrize(
    "collection, document_id, version",
    [
        ("system", 0, 1),
        (None, 2, 1),
        ("brands", None, 1),
        ("brands", 2, "abc"),
    ],
)
def test_rollback_validation(seeded, collection, document_id, version):
    with pytest.raises(InvalidRequest):
        AuditService(seeded).rollback(collection, document_id, version)


def test_rollback_endpoint(client, seeded, admin_headers):
    client.put(f"{API}/brands/2", json={"name": "Audi Sport"}, headers=admin_headers)

    response = client.post(
        f"{API}/audit/rollback",
        json={"collection": "brands", "document_id": 2, "version": 1},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["document"]["name"] == "Audi"
    entries = client.get(f"{API}/audit?collection=brands&document_id=2", headers=admin_headers).json()
    assert entries[0]["version"] == 2
    assert entries[0]["changed_by"] == "tester"
    assert entries[0]["details"]["rollback"] is True


def test_rollback_endpoint_errors(client, seeded, admin_headers):
    missing = client.post(
        f"{API}/audit/rollback",
        json={"collection": "brands", "document_id": 2, "version": 3},
        headers=admin_headers,
    )
    incomplete = client.post(f"{API}/audit/rollback", json={"collection": "brands"}, headers=admin_headers)

    assert missing.status_code == 404
    assert incomplete.status_code == 400
    assert client.post(f"{API}/audit/rollback", json={}).status_code == 401
