from __future__ import annotations

from collections.abc import Callable, Generator, Mapping, Sequence
from typing import Any

import pytest

from sqlstash.backends.memory import MemoryCacheBackend
from sqlstash.config import CacheConfig, set_default_config
from sqlstash.core.cache import ResultCache
from sqlstash.core.rows import Row


class FakeStatement:
    """Prepared statement double recording every call made to it."""

    def __init__(
        self, rows: Sequence[Row] | None = None, execute_result: Any = True, row_count: int = -1, sql: str = ""
    ) -> None:
        self.sql = sql
        self.rows = list(rows or [])
        self.execute_result = execute_result
        self._row_count = row_count
        self.execute_calls: list[Mapping[str, Any] | None] = []
        self.bind_calls: list[tuple[Any, ...]] = []
        self.fetch_all_calls = 0
        self.fetch_column_calls: list[int] = []
        self.closed = False

    def bind_value(self, identifier: str, value: Any, *args: Any, **kwargs: Any) -> bool:
        self.bind_calls.append(("bind_value", identifier, value, args, kwargs))
        return True

    def bind_param(self, identifier: str, variable: Any, *args: Any, **kwargs: Any) -> bool:
        self.bind_calls.append(("bind_param", identifier, variable, args, kwargs))
        return True

    def bind_column(self, column: Any, param: Any, *args: Any, **kwargs: Any) -> bool:
        self.bind_calls.append(("bind_column", column, param, args, kwargs))
        return True

    def execute(self, parameters: Mapping[str, Any] | None = None) -> Any:
        self.execute_calls.append(parameters)
        return self.execute_result

    def fetch_all(self) -> list[Row]:
        self.fetch_all_calls += 1
        return list(self.rows)

    def fetch_column(self, column_index: int = 0) -> Any:
        self.fetch_column_calls.append(column_index)
        return f"column-{column_index}"

    def row_count(self) -> int:
        return self._row_count

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    """Connection double handing out statements from a factory."""

    def __init__(self, factory: Callable[[str], Any]) -> None:
        self.factory = factory
        self.prepared: list[tuple[str, Mapping[str, Any] | None]] = []
        self.statements: list[Any] = []
        self.closed = False

    def prepare(self, query: str, options: Mapping[str, Any] | None = None) -> Any:
        self.prepared.append((query, options))
        statement = self.factory(query)
        self.statements.append(statement)
        return statement

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def default_config() -> Generator[CacheConfig, None, None]:
    config = CacheConfig()
    set_default_config(config)
    yield config
    set_default_config(None)


@pytest.fixture
def user_rows() -> list[Row]:
    return [
        Row.from_values(["id", "name"], (1, "alice")),
        Row.from_values(["id", "name"], (2, "bob")),
        Row.from_values(["id", "name"], (3, "carol")),
    ]


@pytest.fixture
def memory_backend() -> MemoryCacheBackend:
    return MemoryCacheBackend()


@pytest.fixture
def result_cache(memory_backend: MemoryCacheBackend) -> ResultCache:
    return ResultCache(memory_backend)


@pytest.fixture
def statement_factory() -> type[FakeStatement]:
    return FakeStatement


@pytest.fixture
def connection_factory() -> type[FakeConnection]:
    return FakeConnection
