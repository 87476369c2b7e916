"""Integration tests for the Lifespan Impact MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from lifespan.core.server.app import create_app
from lifespan.domains.longevity.domain_logic.engine import LongevityEngine


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _payload(result) -> dict:
    """Decode the JSON text returned by a tool call."""
    content = getattr(result, "content", result)
    return json.loads(content[0].text)


ALL_EXPECTED_TOOLS = [
    "health_check",
    "calculate_impact",
    "aggregate_impact",
    "project_lifespan",
    "recommend",
]

READINGS = [
    {"type": "steps", "value": 4000, "date": "2026-01-14"},
    {"type": "steps", "value": 6000, "date": "2026-01-15"},
    {"type": "smoking_status", "value": 3, "date": "2026-01-15", "source": "user_input"},
    {"type": "sleep_hours", "value": 7.5, "date": "2026-01-15"},
]


@pytest.fixture
def client(engine):
    mcp = create_app(engine_override=engine)
    return Client(mcp)


def _call(client, tool: str, arguments: dict) -> dict:
    async def _go():
        async with client:
            return _payload(await client.call_tool(tool, arguments))
    return _run(_go())


def test_server_lists_tools(client):
    async def _check():
        async with client:
            tools = await client.list_tools()
            names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_reports_table(client):
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            text = str(result)
            assert "ok" in text
            assert "table_version" in text
    _run(_check())


def test_create_app_builds_engine_from_settings():
    async def _check():
        async with Client(create_app()) as c:
            tools = await c.list_tools()
            assert "recommend" in [t.name for t in tools]
    _run(_check())


class TestCalculateImpact:
    def test_negative_steps(self, client):
        result = _call(client, "calculate_impact", {"metric_type": "steps", "value": 4000})
        assert result["metric_type"] == "steps"
        assert result["impact"]["direction"] == "negative"
        assert result["impact"]["lifespan_impact_minutes"] == pytest.approx(-15.0)
        assert result["description"] == "15 minutes lost"
        assert result["evidence"] == "strong"
        assert "Lee et al. 2019" in result["reference"]

    def test_unknown_metric_type_is_tool_error(self, client):
        async def _go():
            async with client:
                await client.call_tool("calculate_impact", {"metric_type": "heartbeat", "value": 1})
        with pytest.raises(ToolError):
            _run(_go())


class TestAggregateImpact:
    def test_month_summary(self, client):
        result = _call(client, "aggregate_impact", {"metrics": READINGS, "period": "month"})
        assert result["time_period"] == "month"
        contributions = result["metric_contributions"]
        # steps: mean daily impact -10 over 30 days; smoking: state, not multiplied
        assert contributions["steps"]["lifespan_impact_minutes"] == pytest.approx(-300.0)
        assert contributions["smoking_status"]["lifespan_impact_minutes"] == pytest.approx(-348.3)
        assert result["formatted_total"].startswith("-")
        assert result["top_negative_metric"] == "smoking_status"
        assert result["top_positive_metric"] == "sleep_hours"

    def test_interactions_flag_follows_request(self, client):
        readings = [
            {"type": "sleep_hours", "value": 7.5, "date": "2026-01-15"},
            {"type": "exercise_minutes", "value": 30, "date": "2026-01-15"},
        ]
        listed_only = _call(client, "aggregate_impact", {"metrics": readings})
        assert listed_only["interactions_applied"] is False
        assert [e["title"] for e in listed_only["interactions"]] == ["Sleep-Exercise Synergy"]

        applied = _call(client, "aggregate_impact", {"metrics": readings, "apply_interactions": True})
        assert applied["interactions_applied"] is True
        assert (
            applied["total_impact"]["lifespan_impact_minutes"]
            > listed_only["total_impact"]["lifespan_impact_minutes"]
        )

    def test_mixed_timezone_readings(self, client):
        readings = [
            {"type": "smoking_status", "value": 3, "date": "2026-01-02"},
            {"type": "smoking_status", "value": 2, "date": "2026-01-02T12:00:00+05:00"},
            {"type": "smoking_status", "value": 0, "date": "2026-01-02T09:00:00"},
        ]
        result = _call(client, "aggregate_impact", {"metrics": readings, "period": "month"})
        assert result["metric_contributions"]["smoking_status"]["direction"] == "neutral"

    def test_unknown_period_is_tool_error(self, client):
        async def _go():
            async with client:
                await client.call_tool("aggregate_impact", {"metrics": READINGS, "period": "week"})
        with pytest.raises(ToolError):
            _run(_go())

    def test_malformed_date_is_tool_error(self, client):
        async def _go():
            async with client:
                await client.call_tool(
                    "aggregate_impact",
                    {"metrics": [{"type": "steps", "value": 1, "date": "yesterday"}]},
                )
        with pytest.raises(ToolError):
            _run(_go())


class TestProjectLifespan:
    def test_from_daily_total(self, client):
        result = _call(client, "project_lifespan", {
            "birth_year": 1986,
            "gender": "male",
            "daily_total_minutes": 0.0,
            "as_of": "2026-01-15",
        })
        assert result["baseline_life_expectancy_years"] == pytest.approx(73.5)
        assert result["adjusted_life_expectancy_years"] == pytest.approx(73.5)
        assert result["confidence_percentage"] == pytest.approx(0.4)
        assert result["calculation_date"] == "2026-01-15"

    def test_from_metrics_with_completeness(self, client):
        result = _call(client, "project_lifespan", {
            "birth_year": 1986,
            "gender": "female",
            "metrics": READINGS,
            "tracked_metric_types": 3,
            "history_days": 30,
            "as_of": "2026-01-15",
        })
        assert result["net_impact_years"] < 0
        assert result["daily_total_minutes"] < 0
        assert result["confidence_percentage"] > 0.3
        assert "confidence_description" in result

    def test_evidence_weighting_off_by_default(self, client):
        result = _call(client, "project_lifespan", {"metrics": READINGS, "as_of": "2026-01-15"})
        assert result["evidence_quality"] is None

    def test_evidence_weighting_shrinks_effect(self, table):
        plain = Client(create_app(engine_override=LongevityEngine(table)))
        weighted = Client(create_app(engine_override=LongevityEngine(table, evidence_weighting=True)))
        args = {"birth_year": 1986, "gender": "male", "metrics": READINGS, "as_of": "2026-01-15"}
        full = _call(plain, "project_lifespan", args)
        damped = _call(weighted, "project_lifespan", args)
        assert 0 < damped["evidence_quality"] < 1
        assert full["net_impact_years"] < damped["net_impact_years"] < 0

    def test_missing_profile_uses_default(self, client):
        result = _call(client, "project_lifespan", {"daily_total_minutes": 0.0})
        assert result["baseline_life_expectancy_years"] == pytest.approx(78.0)


class TestRecommend:
    def test_picks_smoking(self, client):
        result = _call(client, "recommend", {"metrics": READINGS, "period": "day"})
        assert result["status"] == "ok"
        rec = result["recommendation"]
        assert rec["metric_type"] == "smoking_status"
        assert rec["action_text"].startswith("Quit smoking today")
        assert rec["benefit_minutes"] > 60

    def test_no_data(self, client):
        result = _call(client, "recommend", {"metrics": []})
        assert result == {"status": "no_data", "recommendation": None}
