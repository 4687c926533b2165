from app.models.audit import AuditLog
from app.models.stage import Stage
from app.models.vehicle import Engine, VehicleType
from app.services.integrity import IntegrityService


def test_seed_is_consistent(seeded):
    assert IntegrityService(seeded).check() == {"ok": True, "violations": []}


def corrupt(db):
    db.query(VehicleType).filter(VehicleType.id == 200).update({"brand_id": 2})
    db.query(Engine).filter(Engine.id == 301).update({"model_id": 102})
    db.query(Stage).filter(Stage.id == 400).update({"gain_hp": 1})
    db.query(Stage).filter(Stage.id == 403).update({"engine_id": 999})
    db.commit()


def test_check_reports_each_kind_of_violation(seeded):
    corrupt(seeded)

    report = IntegrityService(seeded).check()

    found = {(v["type"], v["collection"], v["id"], v["field"]) for v in report["violations"]}
    assert report["ok"] is False
    assert found == {
        ("mismatch", "types", 200, "brand_id"),
        ("mismatch", "engines", 301, "model_id"),
        ("gain", "stages", 400, "gain_hp"),
        ("dangling", "stages", 403, "engine_id"),
    }


def test_repair_fixes_derived_fields_and_reports_dangling(seeded):
    corrupt(seeded)

    result = IntegrityService(seeded, actor="tester").repair()

    assert result["repaired"] == 3
    assert result["ok"] is False
    assert [(v["type"], v["id"]) for v in result["remaining"]] == [("dangling", 403)]
    assert seeded.get(VehicleType, 200).brand_id == 1
    assert seeded.get(Engine, 301).model_id == 101
    assert seeded.get(Stage, 400).gain_hp == 40
    assert seeded.query(AuditLog).filter(AuditLog.action == "repair").count() == 1
