"""Tests for the cache service and lesson detail caching."""

import json

from mathlearn.seeding import JsonSeeder
from mathlearn.utils.cache import CacheService, cache_service


class FakeRedis:
    """Dict-backed stand-in for the handful of redis calls CacheService makes."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    def scan_iter(self, match):
        prefix = match.rstrip("*")
        return [key for key in self.store if key.startswith(prefix)]

    def ping(self):
        return True


class BrokenRedis(FakeRedis):
    def get(self, key):
        raise ConnectionError("redis went away")

    def ping(self):
        raise ConnectionError("redis went away")


def _cache_with(client):
    cache = CacheService(enabled=False)
    cache.redis_client = client
    return cache


def test_disabled_cache_is_a_no_op():
    cache = CacheService(enabled=False)

    assert cache.enabled is False
    assert cache.set("k", {"a": 1}) is False
    assert cache.get("k") is None
    assert cache.clear_lessons() == 0
    assert cache.status() == "DISABLED"


def test_round_trip_and_clear_lessons():
    cache = _cache_with(FakeRedis())

    cache.set(cache.lesson_key("lesson-1"), {"id": "lesson-1"})
    cache.set("other:1", {"keep": True})

    assert cache.get("lesson:lesson-1") == {"id": "lesson-1"}
    assert cache.clear_lessons() == 1
    assert cache.get("lesson:lesson-1") is None
    assert cache.get("other:1") == {"keep": True}


def test_errors_are_treated_as_miss():
    cache = _cache_with(BrokenRedis())

    assert cache.get("lesson:1") is None
    assert cache.status() == "ERROR"


def test_lesson_detail_is_served_from_cache(client, lessons, db_session, monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_service, "redis_client", fake)

    first = client.get("/api/lessons/lesson-1").json()["data"]
    assert "lesson:lesson-1" in fake.store

    lessons[0].title = "Renamed"
    db_session.commit()

    second = client.get("/api/lessons/lesson-1").json()["data"]
    assert second == first
    assert second["title"] == "Basic Arithmetic"


def _write_lesson_seed(tmp_path, is_active):
    data = tmp_path / "data"
    data.mkdir(exist_ok=True)
    (data / "lessons.json").write_text(json.dumps([
        {"id": "lesson-1", "title": "Basic Arithmetic", "order": 1, "is_active": is_active},
    ]))
    path = tmp_path / "seed-config.json"
    path.write_text(json.dumps({
        "version": "cache-test",
        "seedOrder": [
            {"table": "lessons", "file": "lessons.json", "description": "Lessons", "dependencies": [],
             "requiredFields": ["id", "title", "order"]},
        ],
        "settings": {"saltRounds": 4},
    }))
    return path


def test_reseeding_lessons_drops_cached_detail(client, db_session, tmp_path, monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_service, "redis_client", fake)

    JsonSeeder(db_session, _write_lesson_seed(tmp_path, True)).seed_all()
    assert client.get("/api/lessons/lesson-1").status_code == 200
    assert "lesson:lesson-1" in fake.store

    JsonSeeder(db_session, _write_lesson_seed(tmp_path, False)).seed_table_by_name("lessons")

    assert "lesson:lesson-1" not in fake.store
    assert client.get("/api/lessons/lesson-1").status_code == 404


def test_seeding_users_keeps_cached_lessons(db_session, tmp_path, monkeypatch):
    fake = FakeRedis()
    fake.store["lesson:lesson-1"] = json.dumps({"id": "lesson-1"})
    monkeypatch.setattr(cache_service, "redis_client", fake)
    data = tmp_path / "data"
    data.mkdir()
    (data / "users.json").write_text(json.dumps([{"email": "ada@mathlearn.com"}]))
    path = tmp_path / "seed-config.json"
    path.write_text(json.dumps({
        "seedOrder": [{"table": "users", "file": "users.json", "requiredFields": ["email"]}],
    }))

    JsonSeeder(db_session, path).seed_all()

    assert "lesson:lesson-1" in fake.store
