"""
Shared fixtures: exercise factories and a scripted fake backend.

The fake backend answers through httpx.MockTransport, so the real
ApiClient is exercised end to end without a network.
"""

import json

import httpx
import pytest

from spacemission.classroom import ApiClient
from spacemission.schemas import Exercise, ExerciseType, Level, LevelProgress


def make_exercise(id=1, **overrides) -> Exercise:
    fields = {
        "id": id,
        "level_id": 1,
        "order_index": id,
        "type": ExerciseType.MULTIPLE_CHOICE,
        "prompt": f"Question {id}?",
        "options": ["Mercury", "Venus", "Earth", "Mars"],
        "correct_answer": "A",
        "points": 10,
        "time_limit_seconds": 0,
        "explanation": "Mercury is closest to the Sun.",
    }
    fields.update(overrides)
    return Exercise(**fields)


def make_level(id, order_index, planet_id=1) -> Level:
    return Level(id=id, planet_id=planet_id, order_index=order_index, title=f"Level {id}")


def completed(level_id) -> LevelProgress:
    return LevelProgress(level_id=level_id, total_exercises=2, completed_exercises=2,
                         completion_percentage=100.0, is_completed=True)


class FakeBackend:
    """
    Route table for MockTransport.

    Routes map (method, path) to either (status, body) or a callable
    taking the request and returning (status, body).
    """

    def __init__(self):
        self.routes = {}
        self.requests: list[httpx.Request] = []

    def add(self, method, path, response):
        self.routes[(method, path)] = response

    def calls(self, method, path) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def bodies(self, method, path) -> list[dict]:
        return [json.loads(r.content) for r in self.calls(method, path)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        if callable(route):
            route = route(request)
        status, body = route
        return httpx.Response(status, json=body)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api(backend) -> ApiClient:
    return ApiClient(base_url="http://test", transport=httpx.MockTransport(backend.handler))
