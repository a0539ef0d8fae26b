"""Shared test helpers for storepulse tests."""

from collections.abc import Callable

import httpx

from storepulse.core.errors import ApiError


class FlakyOperation:
    """Async operation that raises the queued failures, then returns a value.

    Example:
        op = FlakyOperation([ApiError("boom", 500)], result="ok")
        await op()  # raises ApiError
        await op()  # returns "ok"
    """

    def __init__(self, failures: list[BaseException], result: object = "ok") -> None:
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


def api_error(status: int, message: str = "Request failed", retry_after: str | None = None) -> ApiError:
    return ApiError(message, status_code=status, retry_after=retry_after)


Route = Callable[[httpx.Request], httpx.Response] | httpx.Response


def json_transport(routes: dict[str, Route], *, reachable: bool = True) -> httpx.MockTransport:
    """MockTransport answering by request path.

    HEAD requests (reachability probes) succeed unless ``reachable`` is
    False, in which case they raise ConnectError. Unknown paths get a 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "HEAD":
            if not reachable:
                raise httpx.ConnectError("Connection refused", request=request)
            return httpx.Response(200)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "Not found"})
        if isinstance(route, httpx.Response):
            return route
        return route(request)

    return httpx.MockTransport(handler)


def review_payload(count: int = 2, *, has_more: bool = False, total: int | None = None) -> dict:
    return {
        "reviews": [
            {
                "_id": f"r{i}",
                "name": f"User {i}",
                "comment": "Crashes on launch" if i % 2 else "Love it",
                "date": "2026-01-0{}T10:00:00Z".format(i % 9 + 1),
                "rating": 1 if i % 2 else 5,
                "sentiment": "NEGATIVE" if i % 2 else "POSITIVE",
                "quest": "BUG" if i % 2 else None,
            }
            for i in range(count)
        ],
        "hasMore": has_more,
        "totalCount": total if total is not None else count,
        "overview": {
            "sentimentBreakdown": {"positive": 1, "negative": 1},
            "platformBreakdown": {"GooglePlay": 2, "AppleStore": 0, "ChromeExt": 0},
            "questBreakdown": {"bug": 1, "featureRequest": 0, "other": 0},
        },
    }


def quest_payload() -> dict:
    return {
        "quests": [
            {
                "_id": "q1",
                "title": "Fix crash on launch",
                "type": "BUG_FIX",
                "priority": "HIGH",
                "state": "OPEN",
                "reviewId": "r1",
            },
        ],
        "hasMore": False,
        "totalCount": 1,
    }


def gamification_payload() -> dict:
    return {
        "gamificationData": {
            "xp": 1250,
            "level": 4,
            "badges": [
                {
                    "id": "first-quest",
                    "name": "First Quest",
                    "description": "Created your first quest",
                    "category": "getting_started",
                    "earnedAt": "2026-01-02T10:00:00Z",
                }
            ],
            "streaks": {"currentLoginStreak": 3, "longestLoginStreak": 7},
            "activityCounts": {"questsCreated": 5, "questsCompleted": 2},
            "xpHistory": [
                {"amount": 50, "action": "QUEST_CREATED", "timestamp": "2026-01-02T10:00:00Z"}
            ],
        }
    }
