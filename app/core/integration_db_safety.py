from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import URL, make_url

# Hosts reachable from a developer machine or the compose network only.
LOCAL_TEST_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "listing_pipeline_postgres"})


@dataclass(frozen=True, slots=True)
class IntegrationDbSafetyResult:
    is_safe: bool
    reason: str
    database_name: str
    host: str


def _unsafe_reason(url: URL, db_name: str, host: str) -> str | None:
    if url.get_backend_name() != "postgresql":
        return "listing pipeline tables need PostgreSQL (row locks, partial indexes)"
    if not db_name:
        return "database name is empty"
    if "test" not in db_name.lower():
        return "database name must contain 'test'"
    if host not in LOCAL_TEST_HOSTS:
        return f"host must be one of {sorted(LOCAL_TEST_HOSTS)}"
    return None


def assess_integration_db_safety(database_url: str) -> IntegrationDbSafetyResult:
    url = make_url(database_url)
    db_name = (url.database or "").strip()
    host = (url.host or "").strip().lower()
    reason = _unsafe_reason(url, db_name, host)
    return IntegrationDbSafetyResult(
        is_safe=reason is None,
        reason=reason or "ok",
        database_name=db_name,
        host=host,
    )


def assert_safe_integration_db(database_url: str) -> None:
    """Guard the integration suite, which truncates listings, payments and coupons between tests."""
    result = assess_integration_db_safety(database_url)
    if not result.is_safe:
        raise RuntimeError(
            f"Refusing to truncate listing pipeline tables in '{result.database_name}' "
            f"on '{result.host}': {result.reason}."
        )
