"""In-memory stand-in for the parts of the supabase/postgrest client the app calls."""
import copy
import fnmatch
import itertools
import re
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from postgrest.exceptions import APIError


def api_error(code: str, message: str = "error") -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


class FakeResponse:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


def _split_top_level(expr: str) -> List[str]:
    parts, depth, current = [], 0, ""
    for ch in expr:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += ch
    parts.append(current)
    return parts


def _parse_in_list(raw: str) -> List[str]:
    inner = raw.strip()[1:-1]
    return [v.strip().strip('"') for v in re.findall(r'"[^"]*"|[^,]+', inner)]


def _or_predicate(expr: str) -> Callable[[dict], bool]:
    clauses = []
    for part in _split_top_level(expr):
        column, op, value = part.split(".", 2)
        clauses.append((column, op, value))

    def check(row: dict) -> bool:
        for column, op, value in clauses:
            actual = row.get(column)
            if op == "is" and value == "null" and actual is None:
                return True
            if op == "eq" and actual is not None and str(actual) == value:
                return True
            if op == "in" and actual in _parse_in_list(value):
                return True
        return False

    return check


def _comparable(a, b) -> bool:
    return a is not None and b is not None


class _Not:
    def __init__(self, query: "FakeQuery"):
        self.query = query

    def is_(self, column: str, value: str) -> "FakeQuery":
        self.query.calls.append(("not.is", column, value))
        self.query.filters.append(lambda r: r.get(column) is not None)
        return self.query


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.on_conflict: Optional[str] = None
        self.columns = "*"
        self.count_mode: Optional[str] = None
        self.filters: List[Callable[[dict], bool]] = []
        self.orders: List[tuple] = []
        self.limit_n: Optional[int] = None
        self.range_bounds: Optional[tuple] = None
        self.single_mode: Optional[str] = None
        self.calls: List[tuple] = []

    # operations
    def select(self, columns: str = "*", count: Optional[str] = None):
        if self.op == "select":
            self.columns = columns
        self.count_mode = count
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, values: dict):
        self.op, self.payload = "update", values
        return self

    def upsert(self, rows, on_conflict: Optional[str] = None):
        self.op, self.payload, self.on_conflict = "upsert", rows, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    # filters
    def _add(self, name, column, value, predicate):
        self.calls.append((name, column, value))
        self.filters.append(predicate)
        return self

    def eq(self, column, value):
        return self._add("eq", column, value, lambda r: r.get(column) == value)

    def neq(self, column, value):
        return self._add("neq", column, value, lambda r: r.get(column) != value)

    def gte(self, column, value):
        return self._add("gte", column, value,
                         lambda r: _comparable(r.get(column), value) and r.get(column) >= value)

    def lte(self, column, value):
        return self._add("lte", column, value,
                         lambda r: _comparable(r.get(column), value) and r.get(column) <= value)

    def in_(self, column, values):
        values = list(values)
        return self._add("in", column, values, lambda r: r.get(column) in values)

    def ilike(self, column, pattern):
        regex = fnmatch.translate(pattern.replace("%", "*").lower())
        return self._add("ilike", column, pattern,
                         lambda r: r.get(column) is not None and re.match(regex, str(r[column]).lower()) is not None)

    def overlaps(self, column, values):
        return self._add("overlaps", column, list(values),
                         lambda r: bool(set(r.get(column) or []) & set(values)))

    def contains(self, column, values):
        return self._add("contains", column, list(values),
                         lambda r: set(values) <= set(r.get(column) or []))

    def is_(self, column, value):
        return self._add("is", column, value, lambda r: r.get(column) is None)

    def or_(self, expr: str):
        return self._add("or", None, expr, _or_predicate(expr))

    @property
    def not_(self):
        return _Not(self)

    # modifiers
    def order(self, column, desc: bool = False):
        self.calls.append(("order", column, desc))
        self.orders.append((column, desc))
        return self

    def limit(self, n: int):
        self.limit_n = n
        return self

    def range(self, start: int, end: int):
        self.calls.append(("range", start, end))
        self.range_bounds = (start, end)
        return self

    def single(self):
        self.single_mode = "single"
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    def _match(self, row: dict) -> bool:
        return all(f(row) for f in self.filters)

    def _embed(self, row: dict) -> dict:
        out = copy.deepcopy(row)
        for foreign in re.findall(r"(\w+)\(", self.columns):
            key = f"{foreign.rstrip('s')}_id"
            out[foreign] = next(
                (copy.deepcopy(r) for r in self.db.tables.get(foreign, []) if r.get("id") == row.get(key)),
                None,
            )
        return out

    def execute(self) -> FakeResponse:
        self.db.executed.append(self)
        error = self.db.errors.get((self.table_name, self.op)) or self.db.errors.get((self.table_name, None))
        if error:
            raise error
        with self.db.lock:
            handler = getattr(self, f"_execute_{self.op}")
            return handler()

    def _execute_select(self) -> FakeResponse:
        rows = [r for r in self.db.tables.get(self.table_name, []) if self._match(r)]
        for column, desc in reversed(self.orders):
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            rows = sorted(present, key=lambda r: r[column], reverse=desc) + missing
        total = len(rows)
        if self.range_bounds:
            start, end = self.range_bounds
            rows = rows[start:end + 1]
        if self.limit_n is not None:
            rows = rows[:self.limit_n]
        data = [self._embed(r) for r in rows]
        count = total if self.count_mode else None
        if self.single_mode == "single":
            if len(data) != 1:
                raise api_error("PGRST116", "JSON object requested, multiple (or no) rows returned")
            return FakeResponse(data[0], count)
        if self.single_mode == "maybe":
            return FakeResponse(data[0] if data else None, count)
        return FakeResponse(data, count)

    def _execute_insert(self) -> FakeResponse:
        rows = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = []
        for row in rows:
            new = self.db.with_defaults(self.table_name, row)
            self.db.check_unique(self.table_name, new)
            self.db.tables.setdefault(self.table_name, []).append(new)
            inserted.append(copy.deepcopy(new))
        return FakeResponse(inserted)

    def _execute_update(self) -> FakeResponse:
        updated = []
        for row in self.db.tables.get(self.table_name, []):
            if self._match(row):
                row.update(copy.deepcopy(self.payload))
                updated.append(copy.deepcopy(row))
        return FakeResponse(updated)

    def _execute_upsert(self) -> FakeResponse:
        rows = self.payload if isinstance(self.payload, list) else [self.payload]
        keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
        table = self.db.tables.setdefault(self.table_name, [])
        out = []
        for row in rows:
            existing = next((r for r in table if all(r.get(k) == row.get(k) for k in keys)), None)
            if existing is not None:
                existing.update(copy.deepcopy(row))
                out.append(copy.deepcopy(existing))
            else:
                new = self.db.with_defaults(self.table_name, row)
                table.append(new)
                out.append(copy.deepcopy(new))
        return FakeResponse(out)

    def _execute_delete(self) -> FakeResponse:
        table = self.db.tables.get(self.table_name, [])
        removed = [r for r in table if self._match(r)]
        self.db.tables[self.table_name] = [r for r in table if not self._match(r)]
        return FakeResponse(removed)


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.rpc_calls.append((self.name, self.params))
        handler = self.db.rpc_handlers.get(self.name)
        if handler is None:
            raise api_error("PGRST202", f"Could not find the function {self.name}")
        result = handler(self.params)
        if isinstance(result, Exception):
            raise result
        return FakeResponse(result)


class FakeAuthAdmin:
    def __init__(self):
        self.signed_out: List[str] = []

    def sign_out(self, token: str):
        self.signed_out.append(token)


class FakeAuth:
    """Attributes can be replaced per test to script Supabase Auth answers"""

    def __init__(self):
        self.admin = FakeAuthAdmin()
        self.users: Dict[str, Any] = {}
        self.reset_requests: List[tuple] = []
        self.sign_up_result: Any = None
        self.sign_in_result: Any = None
        self.error: Optional[Exception] = None

    def sign_up(self, credentials: dict):
        if self.error:
            raise self.error
        return self.sign_up_result

    def sign_in_with_password(self, credentials: dict):
        if self.error:
            raise self.error
        return self.sign_in_result

    def get_user(self, jwt: Optional[str] = None):
        user = self.users.get(jwt)
        if user is None:
            raise Exception("invalid JWT")
        return type("UserResponse", (), {"user": user})()

    def reset_password_for_email(self, email: str, options: Optional[dict] = None):
        self.reset_requests.append((email, options))


class FakeSupabase:
    # tables whose rows get a generated "id" when inserted without one
    AUTO_ID_TABLES = {"restaurants", "groups", "group_events", "group_messages", "group_rounds"}

    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.unique: Dict[str, List[tuple]] = {"restaurants": [("name",)]}
        self.errors: Dict[tuple, Exception] = {}
        self.rpc_handlers: Dict[str, Callable[[dict], Any]] = {}
        self.rpc_calls: List[tuple] = []
        self.executed: List[FakeQuery] = []
        self.auth = FakeAuth()
        self.lock = threading.RLock()
        self._clock = itertools.count()
        self._epoch = datetime.now(timezone.utc)

    def now(self) -> str:
        """Strictly increasing timestamps so ordering by created_at is deterministic"""
        return (self._epoch + timedelta(microseconds=next(self._clock))).isoformat()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Optional[dict] = None) -> FakeRpc:
        return FakeRpc(self, name, params or {})

    def seed(self, table: str, *rows: dict) -> None:
        for row in rows:
            self.tables.setdefault(table, []).append(self.with_defaults(table, row))

    def rows(self, table: str) -> List[dict]:
        return self.tables.get(table, [])

    def fail(self, table: str, exc: Exception, op: Optional[str] = None) -> None:
        self.errors[(table, op)] = exc

    def with_defaults(self, table: str, row: dict) -> dict:
        new = copy.deepcopy(row)
        if table in self.AUTO_ID_TABLES and "id" not in new:
            new["id"] = str(uuid.uuid4())
        new.setdefault("created_at", self.now())
        return new

    def check_unique(self, table: str, row: dict) -> None:
        for columns in self.unique.get(table, []):
            for existing in self.tables.get(table, []):
                if all(existing.get(c) == row.get(c) for c in columns):
                    raise api_error("23505", f"duplicate key value violates unique constraint on {table}")
