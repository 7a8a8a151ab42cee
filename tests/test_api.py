import pytest

from jobportal.backend.http import HttpBackend
from jobportal.client.session import SessionController
from jobportal.errors import BackendError, StorageError
from jobportal.schemas.view import CompanyView
from tests.conftest import sign_up


def _signup(client, email="ana@acme.io", password="secret123", **data):
    resp = client.post("/auth/v1/signup", json={"email": email, "password": password, "data": data})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _profile(client, session: dict, role: str = "job_seeker") -> dict:
    user = session["user"]
    resp = client.post(
        "/rest/v1/profiles",
        json={"id": user["id"], "email": user["email"], "full_name": user["email"], "role": role},
        headers=_auth(session["access_token"]),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _join(client, session: dict, company_id: str) -> dict:
    resp = client.post(
        "/rest/v1/company_users",
        json={"company_id": company_id, "profile_id": session["user"]["id"], "is_admin": True},
        headers=_auth(session["access_token"]),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_signup_login_and_current_user(client) -> None:
    body = _signup(client, full_name="Ana")
    assert body["session"]["user"]["email"] == "ana@acme.io"

    dup = client.post("/auth/v1/signup", json={"email": "ana@acme.io", "password": "secret123"})
    assert dup.status_code == 409
    assert dup.json()["detail"]["code"] == "conflict"

    bad = client.post("/auth/v1/token", data={"username": "ana@acme.io", "password": "wrong-one"})
    assert bad.status_code == 400
    assert bad.json()["detail"]["code"] == "invalid_credentials"

    token = client.post("/auth/v1/token", data={"username": "ana@acme.io", "password": "secret123"}).json()[
        "access_token"
    ]
    me = client.get("/auth/v1/user", headers=_auth(token))
    assert me.status_code == 200
    assert me.json()["user_metadata"] == {"full_name": "Ana"}


def test_logout_revokes_token(client) -> None:
    token = _signup(client)["session"]["access_token"]
    assert client.post("/auth/v1/logout", headers=_auth(token)).status_code == 204
    assert client.get("/auth/v1/user", headers=_auth(token)).status_code == 401


def test_table_writes_require_a_token(client) -> None:
    resp = client.post("/rest/v1/companies", json={"name": "Acme"})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "not_authenticated"


def test_table_crud(client) -> None:
    session = _signup(client)["session"]
    headers = _auth(session["access_token"])
    _profile(client, session, role="company")

    created = client.post("/rest/v1/companies", json={"name": "Acme", "is_verified": True}, headers=headers)
    assert created.status_code == 201
    company_id = created.json()["id"]
    _join(client, session, company_id)

    rows = client.get("/rest/v1/companies", params={"name": "Acme", "is_verified": "true"}).json()
    assert [r["id"] for r in rows] == [company_id]
    assert client.get("/rest/v1/companies/count", params={"website": "null"}).json() == {"count": 1}

    patched = client.patch("/rest/v1/companies", params={"id": company_id}, json={"industry": "Software"}, headers=headers)
    assert patched.json()[0]["industry"] == "Software"

    assert client.post("/rest/v1/companies", json={"name": "Acme"}, headers=headers).status_code == 409
    assert client.delete("/rest/v1/companies", headers=headers).status_code == 400
    assert client.delete("/rest/v1/companies", params={"id": company_id}, headers=headers).json() == {"deleted": 1}


def test_writes_are_limited_to_the_callers_rows(client) -> None:
    ana = _signup(client, email="ana@acme.io")["session"]
    bob = _signup(client, email="bob@globex.io")["session"]
    _profile(client, ana, role="company")
    _profile(client, bob, role="company")

    company_id = client.post("/rest/v1/companies", json={"name": "Acme"}, headers=_auth(ana["access_token"])).json()["id"]
    _join(client, ana, company_id)
    job = client.post(
        "/rest/v1/jobs",
        json={"title": "Data Engineer", "description": "Pipelines", "company_id": company_id},
        headers=_auth(ana["access_token"]),
    )
    assert job.status_code == 201, job.text
    job_id = job.json()["id"]
    as_bob = _auth(bob["access_token"])

    gone = client.delete("/rest/v1/jobs", params={"id": job_id}, headers=as_bob)
    assert gone.status_code == 403
    assert gone.json()["detail"]["code"] == "forbidden"
    assert client.get("/rest/v1/jobs/count", params={"id": job_id}).json() == {"count": 1}

    renamed = client.patch("/rest/v1/profiles", params={"id": ana["user"]["id"]}, json={"full_name": "Mallory"}, headers=as_bob)
    assert renamed.status_code == 403
    assert client.get("/rest/v1/profiles", params={"id": ana["user"]["id"]}).json()[0]["full_name"] == "ana@acme.io"

    # a job cannot be moved into a company the caller does not belong to
    other_id = client.post("/rest/v1/companies", json={"name": "Globex"}, headers=as_bob).json()["id"]
    _join(client, bob, other_id)
    moved = client.patch(
        "/rest/v1/jobs", params={"id": job_id}, json={"company_id": other_id}, headers=_auth(ana["access_token"])
    )
    assert moved.status_code == 403

    hijack = client.post(
        "/rest/v1/company_users",
        json={"company_id": company_id, "profile_id": ana["user"]["id"], "position": "Intern"},
        headers=as_bob,
    )
    assert hijack.status_code == 403

    # the owner keeps full access
    own = client.patch("/rest/v1/profiles", params={"id": ana["user"]["id"]}, json={"full_name": "Ana"}, headers=_auth(ana["access_token"]))
    assert own.json()[0]["full_name"] == "Ana"
    assert client.delete("/rest/v1/jobs", params={"id": job_id}, headers=_auth(ana["access_token"])).json() == {"deleted": 1}


def test_unknown_table_and_column(client) -> None:
    assert client.get("/rest/v1/payments").status_code == 404
    resp = client.get("/rest/v1/companies", params={"colour": "red"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "invalid_column"


def test_storage_round_trip(client) -> None:
    headers = _auth(_signup(client)["session"]["access_token"])
    files = {"file": ("a.txt", b"hello", "text/plain")}

    up = client.post("/storage/v1/object/avatars/u1/a.txt", files=files, headers=headers)
    assert up.json() == {"bucket": "avatars", "path": "u1/a.txt", "size": 5}

    blocked = client.post(
        "/storage/v1/object/avatars/u1/a.txt", files=files, headers={**headers, "x-upsert": "false"}
    )
    assert blocked.status_code == 409

    got = client.get("/storage/v1/object/public/avatars/u1/a.txt")
    assert got.content == b"hello"
    assert got.headers["content-type"].startswith("text/plain")

    removed = client.request("DELETE", "/storage/v1/object/avatars", json={"prefixes": ["u1/a.txt"]}, headers=headers)
    assert removed.json() == {"removed": 1}
    assert client.get("/storage/v1/object/public/avatars/u1/a.txt").status_code == 404


@pytest.fixture
def http_controller(client, cache):
    ctl = SessionController(HttpBackend("http://testserver", http=client), cache)
    ctl.start()
    yield ctl
    ctl.close()


def test_controller_over_http(http_controller, client) -> None:
    result = sign_up(http_controller, "owner@acme.io", role="company", company_name="Acme")
    assert isinstance(result.view, CompanyView)
    assert result.view.membership.is_admin is True

    job = http_controller.create_job(
        {"title": "Data Engineer", "description": "Pipelines", "location": "Berlin", "skills_required": ["python"]}
    )
    assert job.success, job.message
    assert [j.id for j in http_controller.get_company_jobs(active_only=True)] == [job.job.id]

    profile = http_controller.upload_avatar(b"\x89PNG-bytes", "me.png", content_type="image/png")
    assert client.get(profile.avatar_url).content == b"\x89PNG-bytes"

    http_controller.sign_out()
    again = http_controller.sign_in("owner@acme.io", "secret123")
    assert again.ok
    assert again.view.company.name == "Acme"


def test_http_errors_keep_backend_codes(http_controller) -> None:
    backend = http_controller.backend
    with pytest.raises(BackendError) as exc:
        backend.table("companies").insert({"name": "Acme"})
    assert exc.value.code == "not_authenticated"

    with pytest.raises(StorageError) as exc:
        backend.storage("avatars").download("missing.png")
    assert exc.value.code == "not_found"

    assert http_controller.sign_in("nobody@acme.io", "secret123").error.value == "invalid_credentials"

    with pytest.raises(BackendError) as exc:
        backend.auth.sign_up("short@acme.io", "123")
    assert exc.value.code == "weak_password"
