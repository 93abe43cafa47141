"""Member API integration tests."""

from __future__ import annotations

import asyncio
import json
from datetime import date, timedelta
from urllib.parse import urlencode

import pytest
from fastapi import FastAPI
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select
from starlette.types import Message, Receive, Scope, Send

from gym_backend.core.config import Settings
from gym_backend.core.constants import DEFAULT_MEMBER_EMAIL, MembershipType, PaymentStatus
from gym_backend.core.security import hash_password
from gym_backend.main import create_app
from gym_backend.models.admin_user import AdminUser
from gym_backend.models.member import Member
from gym_backend.services.photo_storage import PhotoStorage


class RecordingPhotoStorage(PhotoStorage):
    def __init__(self) -> None:
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.fail_upload = False
        self.fail_delete = False
        self.uploads_on_event_loop: list[bool] = []

    def upload(self, content: bytes, filename: str) -> str:
        self.uploads_on_event_loop.append(_event_loop_running())
        if self.fail_upload:
            raise RuntimeError("image host unavailable")
        photo_url = f"https://photos.example/{len(self.uploaded) + 1}-{filename}"
        self.uploaded.append(photo_url)
        return photo_url

    def delete(self, photo_url: str) -> None:
        self.deleted.append(photo_url)
        if self.fail_delete:
            raise RuntimeError("image host unavailable")


def _event_loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _request(
    app: FastAPI,
    method: str,
    path: str,
    *,
    query: dict[str, str] | None = None,
    json_body: object | None = None,
    form: dict[str, str] | None = None,
    files: dict[str, tuple[str, bytes, str]] | None = None,
    token: str | None = None,
) -> tuple[int, list[tuple[str, str]], str]:
    headers: list[tuple[bytes, bytes]] = [(b"host", b"testserver")]
    request_body = b""

    if token is not None:
        headers.append((b"authorization", f"Bearer {token}".encode("utf-8")))

    content_type: str | None = None
    if json_body is not None:
        request_body = json.dumps(json_body).encode("utf-8")
        content_type = "application/json"
    elif files:
        request_body, content_type = _encode_multipart(form or {}, files)
    elif form is not None:
        request_body = urlencode(form).encode("utf-8")
        content_type = "application/x-www-form-urlencoded"

    if content_type is not None:
        headers.append((b"content-type", content_type.encode("utf-8")))
    headers.append((b"content-length", str(len(request_body)).encode("utf-8")))

    scope: Scope = {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": "2.3"},
        "http_version": "1.1",
        "method": method.upper(),
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": urlencode(query or {}).encode("utf-8"),
        "headers": headers,
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "root_path": "",
    }

    sent = False

    async def receive() -> Message:
        nonlocal sent
        if sent:
            return {"type": "http.request", "body": b"", "more_body": False}
        sent = True
        return {"type": "http.request", "body": request_body, "more_body": False}

    messages: list[Message] = []

    async def send(message: Message) -> None:
        messages.append(message)

    receive_fn: Receive = receive
    send_fn: Send = send
    asyncio.run(app(scope, receive_fn, send_fn))

    status_code = 500
    response_headers: list[tuple[str, str]] = []
    body = b""
    for message in messages:
        if message["type"] == "http.response.start":
            status_code = message["status"]
            response_headers = [
                (key.decode("latin-1"), value.decode("latin-1"))
                for key, value in message.get("headers", [])
            ]
        if message["type"] == "http.response.body":
            body += message.get("body", b"")

    return status_code, response_headers, body.decode("utf-8", errors="ignore")


def _encode_multipart(
    fields: dict[str, str],
    files: dict[str, tuple[str, bytes, str]],
) -> tuple[bytes, str]:
    boundary = "gymbackendtestboundary"
    chunks: list[bytes] = []
    for name, value in fields.items():
        chunks.append(
            (
                f"--{boundary}\r\n"
                f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
                f"{value}\r\n"
            ).encode("utf-8")
        )
    for name, (filename, content, content_type) in files.items():
        chunks.append(
            (
                f"--{boundary}\r\n"
                f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
                f"Content-Type: {content_type}\r\n\r\n"
            ).encode("utf-8")
            + content
            + b"\r\n"
        )
    chunks.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"


@pytest.fixture
def app_and_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        session.add(
            AdminUser(
                username="admin",
                password_hash=hash_password("test-password"),
            )
        )
        session.commit()

    settings = Settings(jwt_secret="test-secret", auto_expire_enabled=False, _env_file=None)
    app = create_app(settings=settings, engine=engine, photo_storage=RecordingPhotoStorage())
    return app, engine


def _login(app: FastAPI) -> str:
    status_code, _, body = _request(
        app,
        "POST",
        "/api/auth/login",
        json_body={"username": "admin", "password": "test-password"},
    )
    assert status_code == 200
    return json.loads(body)["token"]


def _member_form(**overrides: str) -> dict[str, str]:
    form = {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "9876543210",
        "membershipType": "monthly",
        "paymentStatus": "paid",
        "startDate": date.today().isoformat(),
        "endDate": (date.today() + timedelta(days=30)).isoformat(),
    }
    form.update(overrides)
    return form


def _photo(filename: str = "face.jpg") -> dict[str, tuple[str, bytes, str]]:
    return {"photo": (filename, b"\xff\xd8\xff fake jpeg bytes", "image/jpeg")}


def _storage(app: FastAPI) -> RecordingPhotoStorage:
    return app.state.photo_storage


def test_member_create_update_delete_flow(app_and_engine):
    app, engine = app_and_engine
    token = _login(app)
    storage = _storage(app)

    status_code, _, body = _request(
        app, "POST", "/api/members", form=_member_form(), files=_photo(), token=token
    )
    assert status_code == 201
    created = json.loads(body)
    assert created["name"] == "Asha Rao"
    assert created["membershipType"] == "monthly"
    assert created["paymentStatus"] == "paid"
    assert created["photoUrl"] == "https://photos.example/1-face.jpg"
    assert created["photo"] == created["photoUrl"]
    assert set(created) >= {"startDate", "endDate", "createdAt", "updatedAt"}
    member_id = created["id"]

    status_code, _, body = _request(app, "GET", f"/api/members/{member_id}", token=token)
    assert status_code == 200
    assert json.loads(body)["email"] == "asha@example.com"

    status_code, _, body = _request(
        app,
        "PUT",
        f"/api/members/{member_id}",
        form=_member_form(name="Asha R", membershipType="yearly"),
        token=token,
    )
    assert status_code == 200
    updated = json.loads(body)
    assert updated["name"] == "Asha R"
    assert updated["membershipType"] == "yearly"
    assert updated["photoUrl"] == "https://photos.example/1-face.jpg"
    assert storage.deleted == []

    status_code, _, body = _request(
        app,
        "PUT",
        f"/api/members/{member_id}",
        form=_member_form(),
        files=_photo("new.png"),
        token=token,
    )
    assert status_code == 200
    assert json.loads(body)["photoUrl"] == "https://photos.example/2-new.png"
    assert storage.deleted == ["https://photos.example/1-face.jpg"]

    status_code, _, body = _request(app, "DELETE", f"/api/members/{member_id}", token=token)
    assert status_code == 200
    assert json.loads(body) == {"message": "Member deleted successfully"}
    assert storage.deleted[-1] == "https://photos.example/2-new.png"

    with Session(engine) as session:
        assert session.get(Member, member_id) is None

    status_code, _, body = _request(app, "GET", f"/api/members/{member_id}", token=token)
    assert status_code == 404
    assert json.loads(body)["error"] == "Member not found"


def test_member_create_reports_validation_errors(app_and_engine):
    app, engine = app_and_engine
    token = _login(app)

    status_code, _, body = _request(
        app, "POST", "/api/members", form=_member_form(name=""), token=token
    )
    assert status_code == 400
    assert json.loads(body) == {"success": False, "error": "Name is required"}

    status_code, _, body = _request(
        app,
        "POST",
        "/api/members",
        form=_member_form(endDate=date.today().isoformat()),
        token=token,
    )
    assert status_code == 400
    assert json.loads(body)["error"] == "End date must be after start date"

    with Session(engine) as session:
        assert session.exec(select(Member)).all() == []


def test_member_email_uniqueness_allows_repeated_placeholder(app_and_engine):
    app, engine = app_and_engine
    token = _login(app)

    for phone in ("9000000001", "9000000002"):
        status_code, _, body = _request(
            app, "POST", "/api/members", form=_member_form(email="", phone=phone), token=token
        )
        assert status_code == 201
        assert json.loads(body)["email"] == DEFAULT_MEMBER_EMAIL

    status_code, _, _ = _request(
        app,
        "POST",
        "/api/members",
        form=_member_form(email="same@example.com", phone="9000000003"),
        token=token,
    )
    assert status_code == 201

    status_code, _, body = _request(
        app,
        "POST",
        "/api/members",
        form=_member_form(email="same@example.com", phone="9000000004"),
        token=token,
    )
    assert status_code == 400
    assert json.loads(body)["error"] == "Email already exists"

    with Session(engine) as session:
        assert len(session.exec(select(Member)).all()) == 3


def test_member_photo_upload_failures_abort_the_write(app_and_engine):
    app, engine = app_and_engine
    token = _login(app)
    storage = _storage(app)

    status_code, _, body = _request(
        app,
        "POST",
        "/api/members",
        form=_member_form(),
        files={"photo": ("notes.txt", b"hello", "text/plain")},
        token=token,
    )
    assert status_code == 400
    assert json.loads(body)["error"] == "Only image files are allowed"

    storage.fail_upload = True
    status_code, _, body = _request(
        app, "POST", "/api/members", form=_member_form(), files=_photo(), token=token
    )
    assert status_code == 400
    assert json.loads(body)["error"] == "Failed to upload image"

    with Session(engine) as session:
        assert session.exec(select(Member)).all() == []


def test_uploaded_photo_is_removed_when_member_write_fails(app_and_engine):
    app, _ = app_and_engine
    token = _login(app)
    storage = _storage(app)

    status_code, _, _ = _request(
        app, "POST", "/api/members", form=_member_form(), token=token
    )
    assert status_code == 201

    status_code, _, body = _request(
        app,
        "POST",
        "/api/members",
        form=_member_form(phone="9000000009"),
        files=_photo(),
        token=token,
    )
    assert status_code == 400
    assert json.loads(body)["error"] == "Email already exists"
    assert storage.deleted == storage.uploaded == ["https://photos.example/1-face.jpg"]

    status_code, _, _ = _request(
        app, "PUT", "/api/members/999", form=_member_form(), files=_photo(), token=token
    )
    assert status_code == 404
    assert storage.deleted[-1] == "https://photos.example/2-face.jpg"


def test_member_delete_succeeds_when_photo_cleanup_fails(app_and_engine):
    app, engine = app_and_engine
    token = _login(app)
    storage = _storage(app)

    status_code, _, body = _request(
        app, "POST", "/api/members", form=_member_form(), files=_photo(), token=token
    )
    member_id = json.loads(body)["id"]

    storage.fail_delete = True
    status_code, _, _ = _request(app, "DELETE", f"/api/members/{member_id}", token=token)
    assert status_code == 200

    with Session(engine) as session:
        assert session.get(Member, member_id) is None

    status_code, _, body = _request(app, "DELETE", f"/api/members/{member_id}", token=token)
    assert status_code == 404


def test_member_phone_and_email_existence_checks(app_and_engine):
    app, _ = app_and_engine
    token = _login(app)

    status_code, _, body = _request(
        app,
        "POST",
        "/api/members",
        form=_member_form(phone="+1 (555) 123-4567", email="Lookup@Example.com"),
        token=token,
    )
    member_id = json.loads(body)["id"]

    status_code, _, body = _request(
        app, "GET", "/api/members/check-phone/15551234567", token=token
    )
    assert status_code == 200
    assert json.loads(body) == {"exists": True}

    status_code, _, body = _request(
        app,
        "GET",
        "/api/members/check-phone/15551234567",
        query={"excludeId": str(member_id)},
        token=token,
    )
    assert json.loads(body) == {"exists": False}

    status_code, _, body = _request(
        app, "GET", "/api/members/check-email/lookup@example.com", token=token
    )
    assert json.loads(body) == {"exists": True}

    status_code, _, body = _request(
        app, "GET", f"/api/members/check-email/{DEFAULT_MEMBER_EMAIL}", token=token
    )
    assert json.loads(body) == {"exists": False}


def test_member_listing_endpoint_paginates_and_filters(app_and_engine):
    app, engine = app_and_engine
    token = _login(app)

    with Session(engine) as session:
        for index in range(25):
            session.add(
                Member(
                    name=f"Member {index:02d}",
                    email=f"member{index}@example.com",
                    phone=f"90000000{index:02d}",
                    phone_digits=f"90000000{index:02d}",
                    membership_type=MembershipType.MONTHLY,
                    start_date=date.today() - timedelta(days=40),
                    end_date=date.today() - timedelta(days=index % 2 + 1),
                    payment_status=PaymentStatus.PAID,
                )
            )
        session.commit()

    status_code, _, body = _request(
        app, "GET", "/api/members", query={"page": "1", "limit": "20"}, token=token
    )
    assert status_code == 200
    first_page = json.loads(body)
    assert len(first_page["data"]) == 20
    assert first_page["total"] == 25
    assert first_page["page"] == 1
    assert first_page["totalPages"] == 2
    assert first_page["hasMore"] is True
    assert all(member["paymentStatus"] == "unpaid" for member in first_page["data"])

    status_code, _, body = _request(
        app, "GET", "/api/members", query={"page": "2", "limit": "20"}, token=token
    )
    second_page = json.loads(body)
    assert len(second_page["data"]) == 5
    assert second_page["hasMore"] is False

    status_code, _, body = _request(
        app,
        "GET",
        "/api/members",
        query={"status": "unpaid", "search": "MEMBER 1"},
        token=token,
    )
    filtered = json.loads(body)
    assert filtered["total"] == 10
    end_dates = [member["endDate"] for member in filtered["data"]]
    assert end_dates == sorted(end_dates, reverse=True)

    status_code, _, body = _request(
        app, "GET", "/api/members", query={"page": "0"}, token=token
    )
    assert status_code == 400


def test_member_routes_require_token(app_and_engine):
    app, _ = app_and_engine

    status_code, _, body = _request(app, "GET", "/api/members")
    assert status_code == 401
    assert json.loads(body)["error"] == "Access denied. No token provided."

    status_code, _, body = _request(app, "GET", "/api/members", token="not-a-jwt")
    assert status_code == 403
    assert json.loads(body)["error"] == "Invalid token"


def test_unknown_route_returns_json_not_found(app_and_engine):
    app, _ = app_and_engine

    status_code, _, body = _request(app, "GET", "/api/nowhere")

    assert status_code == 404
    assert json.loads(body) == {"success": False, "error": "Route not found"}


def test_photo_upload_runs_off_the_event_loop(app_and_engine):
    app, _ = app_and_engine
    token = _login(app)
    storage = _storage(app)

    status_code, _, body = _request(
        app, "POST", "/api/members", form=_member_form(), files=_photo(), token=token
    )
    assert status_code == 201
    member_id = json.loads(body)["id"]

    status_code, _, _ = _request(
        app,
        "PUT",
        f"/api/members/{member_id}",
        form=_member_form(),
        files=_photo("new.png"),
        token=token,
    )
    assert status_code == 200
    assert storage.uploads_on_event_loop == [False, False]


def test_member_without_photo_reports_null_photo_fields(app_and_engine):
    app, _ = app_and_engine
    token = _login(app)

    status_code, _, body = _request(
        app, "POST", "/api/members", form=_member_form(), token=token
    )
    assert status_code == 201
    created = json.loads(body)
    assert created["photoUrl"] is None
    assert created["photo"] is None
