import json

import storage
from recalculation import recalculate_percentage_grades


def _seed(client, n):
    for i in range(n):
        client.post("/api/activities/1/corrections", json={"student_id": i, "points_earned": [i, 10]})


def _tamper(tmp_data_dir, value):
    path = tmp_data_dir / "corrections.json"
    stored = json.loads(path.read_text())
    for record in stored.values():
        record["percentage_grade"] = value
    path.write_text(json.dumps(stored))
    return path


def test_recalculate_fixes_stale_percentages(client, activity, tmp_data_dir):
    _seed(client, 5)
    _tamper(tmp_data_dir, 1.0)

    summary = recalculate_percentage_grades(page_size=2)
    assert summary.completed is True
    assert summary.processed == 5
    assert summary.updated == 5
    assert summary.last_id == 5

    corrections = client.get("/api/activities/1/corrections").json()
    assert [c["percentage_grade"] for c in corrections] == [50.0, 55.0, 60.0, 65.0, 70.0]


def test_recalculate_is_idempotent(client, activity, tmp_data_dir):
    _seed(client, 3)
    _tamper(tmp_data_dir, None)

    first = recalculate_percentage_grades()
    before = (tmp_data_dir / "corrections.json").read_text()
    second = recalculate_percentage_grades()

    assert first.updated == 3
    assert second.updated == 0
    assert (tmp_data_dir / "corrections.json").read_text() == before


def test_recalculate_can_stop_and_resume(client, activity, tmp_data_dir):
    _seed(client, 4)
    _tamper(tmp_data_dir, 0.0)

    calls = []

    def stop_after_two():
        calls.append(1)
        return len(calls) > 2

    partial = recalculate_percentage_grades(page_size=3, should_stop=stop_after_two)
    assert partial.completed is False
    assert partial.processed == 2
    assert partial.last_id == 2

    stored = json.loads((tmp_data_dir / "corrections.json").read_text())
    assert stored["1"]["percentage_grade"] == 50.0
    assert stored["3"]["percentage_grade"] == 0.0

    rest = recalculate_percentage_grades(start_after=partial.last_id)
    assert rest.completed is True
    assert rest.processed == 2
    stored = json.loads((tmp_data_dir / "corrections.json").read_text())
    assert [stored[k]["percentage_grade"] for k in ("1", "2", "3", "4")] == [50.0, 55.0, 60.0, 65.0]


def test_recalculate_skips_orphaned_corrections(client, activity):
    storage.save_correction({"id": None, "activity_id": 404, "final_grade": 10.0, "points_earned": "[]"})
    summary = recalculate_percentage_grades()
    assert summary.skipped == 1
    assert summary.updated == 0


def test_recalculate_endpoint(client, activity, tmp_data_dir):
    _seed(client, 2)
    _tamper(tmp_data_dir, 3.0)
    resp = client.post("/api/corrections/recalculate-percentages", params={"page_size": 1})
    assert resp.status_code == 200
    data = resp.json()
    assert data["processed"] == 2
    assert data["updated"] == 2
    assert data["lastId"] == 2
    assert data["completed"] is True


def test_recalculate_skips_corrections_of_unreadable_activity(client, activity, tmp_data_dir):
    _seed(client, 2)
    path = _tamper(tmp_data_dir, 1.0)
    activities = tmp_data_dir / "activities.json"
    stored = json.loads(activities.read_text())
    del stored["1"]["name"]
    activities.write_text(json.dumps(stored))
    before = path.read_text()

    summary = recalculate_percentage_grades()
    assert summary.completed is True
    assert summary.processed == 2
    assert summary.skipped == 2
    assert summary.updated == 0
    assert path.read_text() == before
