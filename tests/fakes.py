"""Test doubles shared across the suite."""

import asyncio
from datetime import date

from aiohttp import web

from taskboard.models.task import Task, TaskStatus


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_task(title: str, due: str, status: TaskStatus = TaskStatus.PENDING, **fields) -> Task:
    """Build a task without going through a store."""
    return Task(
        id=fields.pop("id", title.lower().replace(" ", "-")),
        owner_id=fields.pop("owner_id", "owner-1"),
        title=title,
        status=status,
        due_date=date.fromisoformat(due),
        **fields,
    )


class FakeHostedStore:
    """aiohttp app imitating the hosted auth and table REST endpoints."""

    API_KEY = "anon-key"

    def __init__(self):
        self.rows = []
        self.requests = []
        self.fail_with = None
        self.delay = 0.0
        self.raw_body = None
        self.users = {"user@example.com": "secret"}
        self._next_id = 1

        self.app = web.Application()
        self.app.router.add_route("*", "/rest/v1/tasks", self.handle_tasks)
        self.app.router.add_post("/auth/v1/token", self.handle_token)
        self.app.router.add_post("/auth/v1/signup", self.handle_signup)
        self.app.router.add_post("/auth/v1/logout", self.handle_logout)

    def _matching(self, query):
        rows = self.rows
        if "id" in query:
            rows = [r for r in rows if r["id"] == query["id"][len("eq."):]]
        if "user_id" in query:
            rows = [r for r in rows if r["user_id"] == query["user_id"][len("eq."):]]
        return rows

    async def _misbehave(self):
        """Apply the configured delay, and return a raw body if one is set."""
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raw_body is not None:
            return web.Response(text=self.raw_body, content_type="text/html")
        return None

    async def handle_tasks(self, request):
        self.requests.append(request)
        broken = await self._misbehave()
        if broken is not None:
            return broken
        if request.headers.get("apikey") != self.API_KEY:
            return web.json_response({"message": "Invalid API key"}, status=401)
        if self.fail_with:
            status, message = self.fail_with
            return web.json_response({"message": message}, status=status)

        query = request.query
        if request.method == "GET":
            rows = sorted(self._matching(query), key=lambda r: r["due_date"])
            return web.json_response(rows)

        if request.method == "POST":
            created = []
            for payload in await request.json():
                row = {
                    "id": f"task-{self._next_id}",
                    "completed_at": None,
                    "created_at": "2030-01-01T09:00:00+00:00",
                    "updated_at": "2030-01-01T09:00:00+00:00",
                }
                row.update(payload)
                self._next_id += 1
                self.rows.append(row)
                created.append(row)
            return web.json_response(created, status=201)

        if request.method == "PATCH":
            changes = await request.json()
            rows = self._matching(query)
            for row in rows:
                row.update(changes)
            return web.json_response(rows)

        if request.method == "DELETE":
            rows = self._matching(query)
            self.rows = [r for r in self.rows if r not in rows]
            return web.json_response([{"id": r["id"]} for r in rows])

        return web.json_response({"message": "method not allowed"}, status=405)

    async def handle_token(self, request):
        broken = await self._misbehave()
        if broken is not None:
            return broken
        body = await request.json()
        if request.query.get("grant_type") != "password" or \
                self.users.get(body.get("email")) != body.get("password"):
            return web.json_response(
                {"error": "invalid_grant", "error_description": "Invalid login credentials"},
                status=400,
            )
        return web.json_response({
            "access_token": "jwt-" + body["email"],
            "refresh_token": "refresh",
            "user": {"id": "user-1", "email": body["email"]},
        })

    async def handle_signup(self, request):
        body = await request.json()
        if body["email"] in self.users:
            return web.json_response({"msg": "User already registered"}, status=422)
        self.users[body["email"]] = body["password"]
        # Confirmation required: user without a session
        return web.json_response({"id": "user-2", "email": body["email"]})

    async def handle_logout(self, request):
        self.requests.append(request)
        broken = await self._misbehave()
        if broken is not None:
            return broken
        return web.Response(status=204)
