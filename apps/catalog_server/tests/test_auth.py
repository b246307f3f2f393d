from catalog_server.config import Settings
from catalog_server.http import create_app
from fastapi.testclient import TestClient


def test_admin_routes_require_token(tmp_path) -> None:
    settings = Settings(app_data_dir=str(tmp_path), auth_token="secret-token")
    app = create_app(settings=settings, auth_token="secret-token")
    client = TestClient(app)

    assert client.post("/api/v1/templates", data={"title": "x"}).status_code == 401
    assert client.put("/api/v1/templates/any", data={"title": "x"}).status_code == 401
    assert client.delete("/api/v1/templates/any").status_code == 401
    wrong = client.delete("/api/v1/templates/any", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401


def test_public_routes_are_open(tmp_path) -> None:
    settings = Settings(app_data_dir=str(tmp_path), auth_token="secret-token")
    client = TestClient(create_app(settings=settings))

    assert client.get("/healthz").json() == {"status": "ok"}
    assert client.get("/api/v1/templates").status_code == 200


def test_bearer_scheme_is_case_insensitive(tmp_path) -> None:
    settings = Settings(app_data_dir=str(tmp_path), auth_token="secret-token")
    client = TestClient(create_app(settings=settings, auth_token="secret-token"))

    accepted = client.delete("/api/v1/templates/missing", headers={"Authorization": "bearer secret-token"})
    assert accepted.status_code == 404
    for header in ("Basic secret-token", "Bearer", "Bearer secret-token-2", "secret-token"):
        response = client.delete("/api/v1/templates/missing", headers={"Authorization": header})
        assert response.status_code == 401
