import logging

import pytest

from core.exceptions import SchemaError, SmartQueryError, UnsafeQueryError
from core.services import build_services


def test_ask_returns_rows(services, fake_llm):
    fake_llm.response = "SELECT name FROM users ORDER BY id"
    rows = services.smart_query().ask("What are the user names?")
    assert rows == [{"name": "Ada"}, {"name": "Grace"}, {"name": "Linus"}]


def test_raw_returns_query_result(services, fake_llm):
    fake_llm.response = "```sql\nSELECT id, total FROM orders ORDER BY id;\n```"
    result = services.smart_query().raw("Show order totals")
    assert result.question == "Show order totals"
    assert result.sql == "SELECT id, total FROM orders ORDER BY id"
    assert result.count == 2
    assert result.data[0] == {"id": 1, "total": 120.5}
    assert result.driver == "openai"
    assert result.mode == "compact"
    assert result.duration >= 0


def test_result_rows_are_capped_when_sql_has_no_limit(services, fake_llm):
    fake_llm.response = "SELECT id FROM users"
    query = services.smart_query()
    query.max_results = 2
    result = query.raw("all users")
    assert result.count == 2
    assert "LIMIT" not in result.sql


def test_existing_limit_is_kept(services, fake_llm):
    fake_llm.response = "SELECT id FROM users ORDER BY id LIMIT 1"
    assert services.smart_query().ask("first user") == [{"id": 1}]


def test_literals_with_colons_run_verbatim(services, fake_llm):
    fake_llm.response = "SELECT id FROM orders WHERE created_at = '2024-01-05 10:30:00'"
    assert services.smart_query().ask("orders at half past ten") == [{"id": 1}]


def test_prompt_contains_schema_and_question(services, fake_llm):
    services.smart_query().to_sql("How many orders?")
    assert "users: id(integer), name(text), email(text)" in fake_llm.system
    assert "-- Customer purchases" in fake_llm.system
    assert "How many orders?" in fake_llm.prompt


def test_table_override_limits_prompt_schema(services, fake_llm):
    services.smart_query().tables(["users"]).to_sql("How many users?")
    assert "users: id(integer)" in fake_llm.system
    assert "orders: id(integer)" not in fake_llm.system


def test_overrides_return_copies(services):
    base = services.smart_query()
    scoped = base.tables(["users"]).connection("default").using("ollama")
    assert scoped is not base
    assert base._tables is None
    assert base.driver_name == "openai"
    assert scoped.driver_name == "ollama"
    assert scoped._tables == ["users"]


def test_unsafe_sql_is_rejected_and_audited(services, fake_llm, caplog):
    fake_llm.response = "DELETE FROM users"
    with caplog.at_level(logging.WARNING, logger="smartquery.audit"):
        with pytest.raises(UnsafeQueryError) as exc:
            services.smart_query().raw("remove everyone")
    assert exc.value.violation == UnsafeQueryError.NON_SELECT
    assert any("security violation" in r.getMessage() for r in caplog.records)

    fake_llm.response = "SELECT COUNT(*) AS n FROM users"
    assert services.smart_query().ask("count users") == [{"n": 3}]


def test_forbidden_table_is_rejected(services, fake_llm):
    fake_llm.response = "SELECT * FROM migrations"
    with pytest.raises(UnsafeQueryError) as exc:
        services.smart_query().to_sql("show migrations")
    assert exc.value.violation == UnsafeQueryError.FORBIDDEN_TABLE


def test_llm_error_sentinel_becomes_error(services, fake_llm):
    fake_llm.response = "-- ERROR: No table stores weather data"
    with pytest.raises(SmartQueryError, match="No table stores weather data"):
        services.smart_query().to_sql("What's the weather?")
    with pytest.raises(SmartQueryError, match="No table stores weather data"):
        services.smart_query().raw("What's the weather?")


def test_execution_failure_is_wrapped_and_logged(services, fake_llm, caplog):
    fake_llm.response = "SELECT no_such_column FROM users"
    with caplog.at_level(logging.ERROR, logger="smartquery.audit"):
        with pytest.raises(SmartQueryError, match="Query execution failed"):
            services.smart_query().raw("broken")
    assert any("Smart Query failed" in r.getMessage() for r in caplog.records)


def test_successful_query_is_audited(services, fake_llm, caplog):
    with caplog.at_level(logging.INFO, logger="smartquery.audit"):
        services.smart_query().ask("all users")
    record = next(r for r in caplog.records if r.name == "smartquery.audit")
    assert record.audit["row_count"] == 3
    assert record.audit["sql"] == "SELECT * FROM users"


def test_query_logging_can_be_disabled(test_settings, fake_embedder, fake_llm, caplog):
    svc = build_services(test_settings.model_copy(update={"QUERY_LOGGING": False}), embedder=fake_embedder)
    svc._llm_clients["openai"] = fake_llm
    try:
        with caplog.at_level(logging.INFO, logger="smartquery.audit"):
            svc.smart_query().ask("all users")
        assert not [r for r in caplog.records if r.name == "smartquery.audit"]
    finally:
        svc.close()


def test_smart_mode_after_indexing(services, fake_llm):
    services.indexer.index()
    fake_llm.response = "SELECT COUNT(*) AS n FROM orders"
    result = services.smart_query().raw("how many orders")
    assert result.mode == "smart"
    assert fake_llm.system.split("Database Schema:\n")[1].startswith("orders:")


def test_named_connection_uses_compact_mode(test_settings, temp_sqlite_db, fake_embedder, fake_llm):
    settings = test_settings.model_copy(update={"CONNECTIONS": {"archive": f"sqlite:///{temp_sqlite_db}"}})
    svc = build_services(settings, embedder=fake_embedder)
    svc._llm_clients["openai"] = fake_llm
    try:
        svc.indexer.index()
        result = svc.smart_query().connection("archive").raw("all users")
        assert result.mode == "compact"
        assert result.count == 3
    finally:
        svc.close()


def test_unknown_connection_raises(services):
    with pytest.raises(SchemaError, match="Unknown connection 'nope'"):
        services.smart_query().connection("nope").to_sql("anything")


def test_limit_word_inside_literal_still_gets_capped(services, fake_llm):
    fake_llm.response = "SELECT id, 'no limit' AS note FROM users"
    query = services.smart_query()
    query.max_results = 2
    assert query.raw("users with a note").count == 2


def test_trailing_limit_with_offset_is_kept(services, fake_llm):
    fake_llm.response = "SELECT id FROM users ORDER BY id LIMIT 2 OFFSET 1"
    query = services.smart_query()
    query.max_results = 1
    assert query.ask("second and third user") == [{"id": 2}, {"id": 3}]
