import pytest
import storage
from fastapi.testclient import TestClient
from main import app


@pytest.fixture(autouse=True)
def tmp_data_dir(tmp_path, monkeypatch):
    """Redirect all storage reads/writes to a temporary directory."""
    monkeypatch.setattr(storage, 'DATA_DIR', str(tmp_path))
    return tmp_path


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def activity(client):
    resp = client.post("/api/activities", json={
        "name": "TP optique",
        "parts": [
            {"label": "Expérimental", "max_points": 10},
            {"label": "Théorique", "max_points": 10},
        ],
    })
    assert resp.status_code == 200
    return resp.json()
