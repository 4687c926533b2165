from app.models.brand import Brand
from app.services.cascade import CascadeService
from app.services.identity import IdAllocator
from app.services.hierarchy import HierarchyStore


def test_next_id_starts_after_existing_rows(seeded):
    allocator = IdAllocator(seeded)

    assert allocator.next_id("brands") == 3
    assert allocator.next_id("brands") == 4
    assert allocator.next_id("stages") == 405


def test_next_id_on_empty_table_starts_at_one(db):
    assert IdAllocator(db).next_id("engines") == 1


def test_deleted_id_is_never_reissued(seeded):
    store = HierarchyStore(seeded)
    brand = store.insert("brands", {"name": "Porsche", "slug": "porsche"})
    seeded.commit()
    assert brand.id == 3

    CascadeService(seeded).delete("brand", 3)

    again = store.insert("brands", {"name": "Porsche", "slug": "porsche"})
    seeded.commit()
    assert again.id == 4


def test_explicit_id_moves_sequence_forward(db):
    store = HierarchyStore(db)
    store.insert("brands", {"id": 40, "name": "Mini", "slug": "mini"})
    db.commit()

    assert store.next_id("brands") == 41


def test_sync_raises_sequence_to_table_max_and_never_lowers(db):
    allocator = IdAllocator(db)
    assert allocator.next_id("brands") == 1

    db.add(Brand(id=50, name="Seat", slug="seat"))
    db.flush()
    assert allocator.sync("brands") == 50
    assert allocator.next_id("brands") == 51

    db.query(Brand).delete()
    db.flush()
    assert allocator.sync("brands") == 51
    assert allocator.next_id("brands") == 52
