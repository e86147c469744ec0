import itertools
import re
import threading
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from qbank.app import create_app
from qbank.client.base import ApiClient
from qbank.database import init_db
from qbank.services.auth_store import AuthStore
from qbank.services.local_storage import LocalStorage

BASE_URL = "http://backend.test/api"

USER = {
    "id": 1,
    "username": "editor",
    "email": "editor@example.com",
    "first_name": "Ed",
    "last_name": "Itor",
    "is_admin": False,
    "is_reviewer": False,
    "is_image_contributor": True,
}

GENERATED_METADATA = {
    "difficulty": "Medium",
    "category": "Valvular Disease",
    "topic": "Mitral Regurgitation",
    "keywords": ["MR", "prolapse"],
    "questionType": "Diagnosis",
    "view": "ME 4-Chamber",
    "majorStructures": ["Mitral valve"],
    "minorStructures": ["Chordae"],
    "modalities": ["TEE", "Color Doppler"],
}

GENERATED_EXAMS = [
    {
        "examName": "PTEeXAM",
        "subtopics": ["3.1: Mitral Valve Disease", {"name": "Valvular Anatomy", "section": "2.2"}],
        "reasoning": "Mitral pathology",
    },
    {"examName": "EACTVI", "subtopics": [{"name": "Mitral Valve Evaluation", "section": "2.3"}]},
]


def make_token(expires_in: timedelta = timedelta(hours=1)) -> str:
    exp = datetime.now(timezone.utc) + expires_in
    return jwt.encode({"sub": "1", "exp": int(exp.timestamp())}, "test-secret", algorithm="HS256")


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, reason: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason or ("OK" if status_code < 400 else "Error")

    @property
    def content(self) -> bytes:
        return b"" if self._payload is None else b"{}"

    @property
    def text(self) -> str:
        return ""

    def json(self):
        return self._payload


class FakeBackend:
    """In-memory stand-in for the REST backend, used as a requests session."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object]] = []
        self.headers_seen: list[dict[str, str]] = []
        self.failures: dict[tuple[str, str], tuple[int, object]] = {}
        self.questions: dict[int, dict] = {}
        self.images: dict[int, dict] = {}
        self.descriptions: dict[int, dict] = {}
        self.metadata: dict[int, dict] = {}
        self.exams: dict[int, list] = {}
        self.associations: dict[tuple[int, int], dict] = {}
        self.reviews: list[dict] = []
        self.valid_tokens: set[str] = set()
        self.user = dict(USER)
        self.generation_gate: threading.Event | None = None
        self.generation_started = threading.Event()
        self._ids = {
            "question": itertools.count(1),
            "image": itertools.count(500),
            "description": itertools.count(900),
            "user": itertools.count(50),
        }

    def next_id(self, kind: str) -> int:
        return next(self._ids[kind])

    def respond(self, method: str, path: str, status: int, payload: object) -> None:
        self.failures[(method, path)] = (status, payload)

    def fail(self, method: str, path: str, status: int = 500, error: str = "boom") -> None:
        self.respond(method, path, status, {"error": error})

    def hold_generation(self) -> threading.Event:
        """Make metadata generation wait until the returned event is set."""
        self.generation_gate = threading.Event()
        return self.generation_gate

    def add_image(self, **values) -> dict:
        image_id = values.pop("id", None) or self.next_id("image")
        image = {
            "id": image_id,
            "filename": f"image-{image_id}.png",
            "mime_type": "image/png",
            "file_size": 2048,
            "image_type": "still",
            "license": "user-contributed",
            **values,
        }
        self.images[image_id] = image
        return image

    def paths(self, method: str | None = None) -> list[str]:
        return [path for m, path, _ in self.calls if method is None or m == method]

    # requests.Session interface

    def request(self, method, url, params=None, json=None, data=None, files=None,
                headers=None, timeout=None):
        assert url.startswith(BASE_URL)
        path = url[len(BASE_URL):]
        self.calls.append((method, path, json if json is not None else data))
        self.headers_seen.append(dict(headers or {}))

        if (method, path) in self.failures:
            status, payload = self.failures[(method, path)]
            return FakeResponse(status, payload)

        for route_method, pattern, handler in ROUTES:
            if route_method != method:
                continue
            match = re.fullmatch(pattern, path)
            if match:
                status, payload = handler(self, *[int(g) for g in match.groups()],
                                          body=json, data=data, files=files, params=params or {},
                                          headers=headers or {})
                return FakeResponse(status, payload)
        return FakeResponse(404, {"error": "Not found"})

    # Handlers

    def _question_with_images(self, question_id: int) -> dict:
        question = dict(self.questions[question_id])
        linked = sorted(
            (assoc for (image_id, qid), assoc in self.associations.items() if qid == question_id),
            key=lambda assoc: assoc["display_order"],
        )
        question["images"] = [
            {**self.images[assoc["image_id"]], "display_order": assoc["display_order"],
             "usage_type": assoc["usage_type"]}
            for assoc in linked
        ]
        return question

    def create_question(self, body, **_):
        question_id = self.next_id("question")
        self.questions[question_id] = {**body, "id": question_id, "question_number": question_id}
        return 201, self._question_with_images(question_id)

    def get_question(self, question_id, **_):
        if question_id not in self.questions:
            return 404, {"error": "Question not found"}
        return 200, self._question_with_images(question_id)

    def update_question(self, question_id, body, **_):
        if question_id not in self.questions:
            return 404, {"error": "Question not found"}
        self.questions[question_id].update(body)
        return 200, self._question_with_images(question_id)

    def list_images(self, params, **_):
        images = list(self.images.values())
        if "type" in params:
            images = [image for image in images if image["image_type"] == params["type"]]
        if "license" in params:
            images = [image for image in images if image["license"] == params["license"]]
        if "tags" in params:
            images = [image for image in images if params["tags"] in image.get("tags", [])]
        limit, offset = params.get("limit", 50), params.get("offset", 0)
        return 200, {
            "images": images[offset:offset + limit],
            "pagination": {
                "total": len(images), "limit": limit, "offset": offset,
                "hasMore": offset + limit < len(images),
            },
        }

    def update_image(self, image_id, body, **_):
        if image_id not in self.images:
            return 404, {"error": "Image not found"}
        self.images[image_id].update(body)
        return 200, self.images[image_id]

    def delete_image(self, image_id, **_):
        if self.images.pop(image_id, None) is None:
            return 404, {"error": "Image not found"}
        return 200, {"message": "Image deleted successfully"}

    def get_image(self, image_id, **_):
        if image_id not in self.images:
            return 404, {"error": "Image not found"}
        return 200, self.images[image_id]

    def upload_image(self, data, files, **_):
        name, content, mime_type = files["image"]
        image = self.add_image(
            filename=name, original_name=name, mime_type=mime_type, file_size=len(content),
            image_type=data.get("image_type", "still"), description=data.get("description"),
            license=data.get("license", "user-contributed"),
        )
        return 201, image

    def associate(self, image_id, question_id, body, **_):
        self.associations[(image_id, question_id)] = {
            "image_id": image_id,
            "display_order": body["display_order"],
            "usage_type": body["usage_type"],
        }
        return 200, {"message": "Image associated with question successfully"}

    def update_usage(self, image_id, question_id, body, **_):
        assoc = self.associations.get((image_id, question_id))
        if assoc is None:
            return 404, {"error": "Association not found"}
        assoc["usage_type"] = body["usage_type"]
        return 200, {"message": "Usage type updated"}

    def image_questions(self, image_id, **_):
        return 200, [
            self.questions[qid] for (iid, qid) in self.associations if iid == image_id
        ]

    def next_for_review(self, **_):
        reviewed = {review["image_id"] for review in self.reviews}
        pending = [image for image_id, image in self.images.items() if image_id not in reviewed]
        if not pending:
            return 404, {"error": "No images to review"}
        return 200, {
            "image": pending[0],
            "stats": {"total": len(self.images), "reviewed": len(reviewed), "remaining": len(pending)},
        }

    def review(self, image_id, body, **_):
        self.reviews.append({"image_id": image_id, **body})
        return 200, {"message": "Review submitted"}

    def create_description(self, body, **_):
        description_id = self.next_id("description")
        self.descriptions[description_id] = {**body, "id": description_id}
        return 201, self.descriptions[description_id]

    def question_descriptions(self, question_id, **_):
        return 200, [d for d in self.descriptions.values() if d["question_id"] == question_id]

    def update_description(self, description_id, body, **_):
        if description_id not in self.descriptions:
            return 404, {"error": "Image description not found"}
        self.descriptions[description_id].update(body)
        return 200, self.descriptions[description_id]

    def delete_description(self, description_id, **_):
        if self.descriptions.pop(description_id, None) is None:
            return 404, {"error": "Image description not found"}
        return 200, {"message": "Image description deleted successfully"}

    def generate_metadata(self, **_):
        if self.generation_gate is not None:
            self.generation_started.set()
            self.generation_gate.wait(5)
        return 200, dict(GENERATED_METADATA)

    def get_metadata(self, question_id, **_):
        return 200, {"metadata": self.metadata.get(question_id)}

    def upsert_metadata(self, question_id, body, **_):
        self.metadata[question_id] = body
        return 200, {"metadata": body}

    def assign_exams(self, **_):
        return 200, [dict(exam) for exam in GENERATED_EXAMS]

    def get_exams(self, question_id, **_):
        return 200, {"exams": self.exams.get(question_id, [])}

    def save_exams(self, question_id, body, **_):
        self.exams[question_id] = body["exams"]
        return 200, {"message": "Exam assignments saved"}

    def login(self, body, **_):
        if body["password"] != "secret":
            return 401, {"error": "Invalid credentials"}
        token = make_token()
        self.valid_tokens.add(token)
        return 200, {"user": self.user, "token": token}

    def register(self, body, **_):
        if body["username"] == self.user["username"]:
            return 400, {"error": "Username already exists"}
        token = make_token()
        self.valid_tokens.add(token)
        user = {**self.user, "id": self.next_id("user"), "username": body["username"], "email": body["email"]}
        return 201, {"user": user, "token": token}

    def verify(self, headers, **_):
        token = headers.get("Authorization", "").removeprefix("Bearer ")
        if token not in self.valid_tokens:
            return 401, {"error": "Invalid token"}
        return 200, {"valid": True, "user": self.user}

    def update_profile(self, body, **_):
        self.user.update(body)
        return 200, {"user": self.user}


ROUTES = [
    ("POST", r"/questions", FakeBackend.create_question),
    ("GET", r"/questions/(\d+)", FakeBackend.get_question),
    ("PUT", r"/questions/(\d+)", FakeBackend.update_question),
    ("GET", r"/questions/(\d+)/metadata", FakeBackend.get_metadata),
    ("POST", r"/questions/(\d+)/metadata", FakeBackend.upsert_metadata),
    ("GET", r"/questions/(\d+)/exams", FakeBackend.get_exams),
    ("POST", r"/questions/(\d+)/exams", FakeBackend.save_exams),
    ("GET", r"/images", FakeBackend.list_images),
    ("GET", r"/images/next-for-review", FakeBackend.next_for_review),
    ("POST", r"/images/upload", FakeBackend.upload_image),
    ("GET", r"/images/(\d+)", FakeBackend.get_image),
    ("PUT", r"/images/(\d+)", FakeBackend.update_image),
    ("DELETE", r"/images/(\d+)", FakeBackend.delete_image),
    ("GET", r"/images/(\d+)/questions", FakeBackend.image_questions),
    ("POST", r"/images/(\d+)/review", FakeBackend.review),
    ("POST", r"/images/(\d+)/associate/(\d+)", FakeBackend.associate),
    ("PUT", r"/images/(\d+)/usage/(\d+)", FakeBackend.update_usage),
    ("POST", r"/image-descriptions", FakeBackend.create_description),
    ("GET", r"/image-descriptions/question/(\d+)", FakeBackend.question_descriptions),
    ("PUT", r"/image-descriptions/(\d+)", FakeBackend.update_description),
    ("DELETE", r"/image-descriptions/(\d+)", FakeBackend.delete_description),
    ("POST", r"/metadata/generate", FakeBackend.generate_metadata),
    ("POST", r"/exams/assign", FakeBackend.assign_exams),
    ("POST", r"/auth/login", FakeBackend.login),
    ("POST", r"/auth/register", FakeBackend.register),
    ("GET", r"/auth/verify", FakeBackend.verify),
    ("PUT", r"/auth/profile", FakeBackend.update_profile),
]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api(backend: FakeBackend) -> ApiClient:
    return ApiClient(BASE_URL, session=backend)


@pytest.fixture
def storage() -> LocalStorage:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return LocalStorage(sessionmaker(bind=engine, autoflush=False))


@pytest.fixture
def store(storage: LocalStorage, api: ApiClient) -> AuthStore:
    auth_store = AuthStore(storage, api)
    auth_store.load()
    return auth_store


@pytest.fixture
def logged_in(store: AuthStore) -> AuthStore:
    store.login("editor", "secret")
    return store


@pytest.fixture
def http(store: AuthStore) -> TestClient:
    return TestClient(create_app(auth_store=store))
