API = "/api/v1/admin"


def test_create_and_list_backups(client, seeded, admin_headers):
    created = client.post(f"{API}/backups", json={"description": "manual"}, headers=admin_headers)

    assert created.status_code == 200
    body = created.json()
    assert body["created"] is True
    assert body["counts"]["stages"] == 5

    listed = client.get(f"{API}/backups", headers=admin_headers).json()
    assert [backup["id"] for backup in listed] == [body["snapshot_id"]]
    assert "data" not in listed[0]


def test_create_backup_without_body(client, seeded, admin_headers):
    response = client.post(f"{API}/backups", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["kind"] == "manual"


def test_empty_dataset_returns_created_false(client, admin_headers):
    response = client.post(f"{API}/backups", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["created"] is False
    assert client.get(f"{API}/backups", headers=admin_headers).json() == []


def test_get_and_delete_backup(client, seeded, admin_headers):
    snapshot_id = client.post(f"{API}/backups", headers=admin_headers).json()["snapshot_id"]

    detail = client.get(f"{API}/backups/{snapshot_id}", headers=admin_headers).json()
    assert len(detail["data"]["brands"]) == 2

    assert client.delete(f"{API}/backups/{snapshot_id}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/backups/{snapshot_id}", headers=admin_headers).status_code == 404


def test_restore_endpoint(client, seeded, admin_headers):
    snapshot_id = client.post(f"{API}/backups", headers=admin_headers).json()["snapshot_id"]
    client.delete(f"{API}/brand?id=1", headers=admin_headers)

    response = client.post(f"{API}/backups/restore", json={"backup_id": snapshot_id}, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["pre_restore_snapshot_id"] is not None
    brands = client.get("/api/v1/catalog/brands").json()
    assert [brand["id"] for brand in brands] == [2, 1]

    kinds = [backup["kind"] for backup in client.get(f"{API}/backups", headers=admin_headers).json()]
    assert kinds == ["pre-restore", "manual"]


def test_restore_missing_backup(client, seeded, admin_headers):
    response = client.post(f"{API}/backups/restore", json={"backup_id": 999}, headers=admin_headers)

    assert response.status_code == 404


def test_restore_without_backup_id(client, seeded, admin_headers):
    response = client.post(f"{API}/backups/restore", json={}, headers=admin_headers)

    assert response.status_code == 400


def test_prune_endpoint(client, seeded, admin_headers):
    for _ in range(4):
        client.post(f"{API}/backups", headers=admin_headers)

    response = client.delete(f"{API}/backups?keep=1", headers=admin_headers)

    assert response.json() == {"deleted_count": 3}
    assert len(client.get(f"{API}/backups", headers=admin_headers).json()) == 1


def test_prune_requires_keep(client, seeded, admin_headers):
    assert client.delete(f"{API}/backups", headers=admin_headers).status_code == 400
    assert client.delete(f"{API}/backups?keep=-2", headers=admin_headers).status_code == 400


def test_list_filters_by_kind(client, seeded, admin_headers):
    client.post(f"{API}/backups", headers=admin_headers)
    client.put(
        f"{API}/stage-plus-pricing",
        json={"stage1_plus_percentage": 5, "stage2_plus_percentage": 5},
        headers=admin_headers,
    )

    auto = client.get(f"{API}/backups?kind=auto", headers=admin_headers).json()

    assert [backup["kind"] for backup in auto] == ["auto"]


def test_list_rejects_negative_limit(client, seeded, admin_headers):
    client.post(f"{API}/backups", headers=admin_headers)

    assert client.get(f"{API}/backups?limit=-1", headers=admin_headers).status_code == 400
    assert client.get(f"{API}/backups?limit=0", headers=admin_headers).json() == []
