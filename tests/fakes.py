"""In-memory stand-in for the Supabase client used by service and router tests.

Only the query-builder surface the services touch is implemented. Unique
constraints mirror ``supabase/migrations/0001_elections.sql`` and the database
functions are re-expressed in Python with the same reasons and payloads.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from postgrest import APIError

UNIQUE_KEYS: dict[str, list[tuple[str, ...]]] = {
    "users": [("id",)],
    "positions": [("id",)],
    "applications": [("id",), ("member_id", "position_id")],
    "elections": [("id",), ("position_id",)],
    "election_rounds": [("id",), ("election_id", "round_number")],
    "election_votes": [("id",), ("election_id", "round_number", "voter_id")],
    "election_winners": [("id",), ("election_id", "application_id")],
}

TIMESTAMP_COLUMNS = {
    "applications": "created_at",
    "positions": "created_at",
    "users": "created_at",
    "election_rounds": "started_at",
    "election_votes": "created_at",
    "election_winners": "declared_at",
}


@dataclass
class FakeResponse:
    data: Any
    count: int | None = None


def _same(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is right
    return str(left) == str(right)


class FakeQuery:
    def __init__(self, db: FakeSupabase, table: str) -> None:
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: list[tuple[str, str, Any]] = []
        self.orders: list[tuple[str, bool]] = []
        self.row_limit: int | None = None
        self.want_count = False
        self.head = False

    def select(self, _columns: str = "*", count: str | None = None, head: bool = False):
        self.op = "select"
        self.want_count = count is not None
        self.head = head
        return self

    def insert(self, payload: Any):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict[str, Any]):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any):
        self.filters.append(("eq", column, value))
        return self

    def in_(self, column: str, values: list[Any]):
        self.filters.append(("in", column, [str(value) for value in values]))
        return self

    def order(self, column: str, desc: bool = False):
        self.orders.append((column, desc))
        return self

    def limit(self, size: int):
        self.row_limit = size
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        for kind, column, value in self.filters:
            if kind == "eq" and not _same(row.get(column), value):
                return False
            if kind == "in" and str(row.get(column)) not in value:
                return False
        return True

    def execute(self) -> FakeResponse:
        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResponse([self.db.insert(self.table, item) for item in payloads])

        matched = [row for row in rows if self._matches(row)]
        if self.op == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matched))
        if self.op == "delete":
            self.db.tables[self.table] = [row for row in rows if row not in matched]
            return FakeResponse(copy.deepcopy(matched))

        for column, desc in reversed(self.orders):
            matched.sort(key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)
        total = len(matched)
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        data = [] if self.head else copy.deepcopy(matched)
        return FakeResponse(data, count=total if self.want_count else None)


class FakeRpc:
    def __init__(self, db: FakeSupabase, name: str, params: dict[str, Any]) -> None:
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.rpc_calls.append((self.name, dict(self.params)))
        forced = self.db.forced_rpc_results.pop(self.name, None)
        if forced is not None:
            return FakeResponse([forced])
        handler = getattr(self.db, f"_fn_{self.name}")
        success, reason, payload = handler(**self.params)
        return FakeResponse([{"success": success, "reason": reason, "payload": payload}])


class FakeSupabase:
    """A tiny PostgREST double holding rows in dictionaries."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {name: [] for name in UNIQUE_KEYS}
        self.rpc_calls: list[tuple[str, dict[str, Any]]] = []
        self.forced_rpc_results: dict[str, dict[str, Any]] = {}
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    def now(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)

    def rows(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        return [
            row
            for row in self.tables.get(table, [])
            if all(_same(row.get(key), value) for key, value in filters.items())
        ]

    def insert(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        row = copy.deepcopy(payload)
        row.setdefault("id", str(uuid.uuid4()))
        stamp = TIMESTAMP_COLUMNS.get(table)
        if stamp:
            row.setdefault(stamp, self.now())
        if table == "applications":
            row.setdefault("kind", "applicant")
            row.setdefault("member_id", None)
        for key in UNIQUE_KEYS.get(table, []):
            values = tuple(row.get(column) for column in key)
            if any(value is None for value in values):
                continue
            if self.rows(table, **dict(zip(key, values, strict=True))):
                raise APIError(
                    {
                        "message": f'duplicate key value violates unique constraint "{table}_key"',
                        "code": "23505",
                        "hint": None,
                        "details": None,
                    }
                )
        self.tables.setdefault(table, []).append(row)
        return copy.deepcopy(row)

    # Seed helpers

    def add_user(self, display_name: str, is_admin: bool = False) -> str:
        return self.insert("users", {"display_name": display_name, "is_admin": is_admin})["id"]

    def add_position(self, title: str = "President", seat_count: int = 1, **extra: Any) -> str:
        payload = {
            "title": title,
            "description": extra.pop("description", ""),
            "is_executive": extra.pop("is_executive", False),
            "seat_count": seat_count,
        }
        return self.insert("positions", payload)["id"]

    def add_applicant(self, position_id: str, display_name: str) -> str:
        member_id = self.add_user(display_name)
        row = self.insert(
            "applications",
            {"position_id": position_id, "member_id": member_id, "statement": "Vote for me"},
        )
        return row["id"]

    # Database functions

    def _election_for(self, **filters: Any) -> dict[str, Any] | None:
        found = self.rows("elections", **filters)
        return found[0] if found else None

    def _fn_open_election_round(
        self,
        p_position_id: str,
        p_expected_status: str | None,
        p_round_number: int,
    ) -> tuple[bool, str, Any]:
        election = self._election_for(position_id=p_position_id)
        if election is None:
            if p_expected_status is not None:
                return False, "not_found", None
            self.insert(
                "elections",
                {
                    "position_id": p_position_id,
                    "status": "active",
                    "current_round": p_round_number,
                    "started_at": self.now(),
                    "ended_at": None,
                },
            )
            election = self._election_for(position_id=p_position_id)
        else:
            if p_expected_status is None:
                return False, "already_exists", None
            if election["status"] != p_expected_status:
                return False, "stale_status", None
            if self.rows("election_rounds", election_id=election["id"], round_number=p_round_number):
                return False, "round_exists", None
            restarted = election["status"] == "ended_no_majority"
            election.update(
                {
                    "status": "active",
                    "current_round": p_round_number,
                    "started_at": (
                        self.now() if restarted else election.get("started_at") or self.now()
                    ),
                    "ended_at": None,
                }
            )

        self.insert(
            "election_rounds",
            {"election_id": election["id"], "round_number": p_round_number, "ended_at": None},
        )
        return True, "ok", copy.deepcopy(election)

    def _fn_close_election_round(
        self,
        p_election_id: str,
        p_round_number: int,
        p_votes_seen: int,
        p_next_status: str,
        p_winner_application_id: str | None,
        p_winner_vote_count: int | None,
    ) -> tuple[bool, str, Any]:
        election = self._election_for(id=p_election_id)
        if election is None:
            return False, "not_found", None
        if election["status"] != "active" or election["current_round"] != p_round_number:
            return False, "stale_round", None
        seen = self.rows("election_votes", election_id=p_election_id, round_number=p_round_number)
        if len(seen) != p_votes_seen:
            return False, "tally_changed", None

        if p_winner_application_id is not None:
            try:
                self.insert(
                    "election_winners",
                    {
                        "election_id": p_election_id,
                        "application_id": p_winner_application_id,
                        "round_number": p_round_number,
                        "vote_count": p_winner_vote_count,
                    },
                )
            except APIError:
                return False, "already_won", None

        closed_at = self.now()
        for round_row in self.rows("election_rounds", election_id=p_election_id, ended_at=None):
            round_row["ended_at"] = closed_at
        election["status"] = p_next_status
        election["ended_at"] = (
            closed_at if p_next_status in {"complete", "ended_no_majority"} else None
        )
        return True, "ok", copy.deepcopy(election)

    def _fn_cast_election_vote(
        self,
        p_election_id: str,
        p_round_number: int,
        p_voter_id: str,
        p_application_id: str,
    ) -> tuple[bool, str, Any]:
        election = self._election_for(id=p_election_id)
        if election is None or election["status"] != "active":
            return False, "election_not_active", None
        if election["current_round"] != p_round_number:
            return False, "stale_round", None
        if not self.rows("applications", id=p_application_id, position_id=election["position_id"]):
            return False, "invalid_candidate", None
        if self.rows("election_winners", election_id=p_election_id, application_id=p_application_id):
            return False, "candidate_already_won", None
        try:
            vote = self.insert(
                "election_votes",
                {
                    "election_id": p_election_id,
                    "round_number": p_round_number,
                    "voter_id": p_voter_id,
                    "application_id": p_application_id,
                },
            )
        except APIError:
            return False, "duplicate_vote", None
        return True, "ok", vote

    def _fn_reset_all_elections(self, p_include_applications: bool = False) -> tuple[bool, str, Any]:
        deleted = {
            "votes": len(self.tables["election_votes"]),
            "winners": len(self.tables["election_winners"]),
            "rounds": len(self.tables["election_rounds"]),
            "elections": len(self.tables["elections"]),
            "applications": 0,
        }
        for table in ("election_votes", "election_winners", "election_rounds", "elections"):
            self.tables[table] = []
        if p_include_applications:
            deleted["applications"] = len(self.tables["applications"])
            self.tables["applications"] = []
        return True, "ok", deleted
