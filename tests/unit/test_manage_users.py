"""Unit tests for the user administration CLI (scripts/manage_users.py)."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from errors import NotFoundError
from scripts.manage_users import build_parser, run
from services.maintenance import MaintenanceService


@pytest.fixture
def maintenance():
    m = MagicMock(spec=MaintenanceService)
    m.grant_subscription = AsyncMock(
        return_value=datetime(2026, 1, 1, 12, 15, tzinfo=timezone.utc)
    )
    m.reset_usage_counter = AsyncMock(return_value=4)
    m.backfill_defaults = AsyncMock(return_value={"subscriptionExpiry": 2, "gameLimit": 1})
    m.sweep_abandoned_signups = AsyncMock(return_value=3)
    return m


class TestParser:
    def test_grant_default_minutes(self):
        args = build_parser(15).parse_args(["grant-subscription", "a@x.io"])
        assert args.email == "a@x.io"
        assert args.minutes == 15

    def test_reset_counter_defaults(self):
        args = build_parser().parse_args(["reset-counter"])
        assert (args.field, args.value) == ("gameLimit", 0)

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestRun:
    async def test_grant_subscription(self, maintenance, capsys):
        args = build_parser().parse_args(["grant-subscription", "a@x.io", "--minutes", "30"])
        assert await run(args, maintenance) == 0
        maintenance.grant_subscription.assert_awaited_once_with("a@x.io", 30)
        assert "2026-01-01T12:15:00+00:00" in capsys.readouterr().out

    async def test_grant_unknown_user_exit_code(self, maintenance):
        maintenance.grant_subscription.side_effect = NotFoundError("User not found")
        args = build_parser().parse_args(["grant-subscription", "ghost@x.io"])
        assert await run(args, maintenance) == 1

    async def test_reset_counter(self, maintenance, capsys):
        args = build_parser().parse_args(["reset-counter", "--value", "2"])
        assert await run(args, maintenance) == 0
        maintenance.reset_usage_counter.assert_awaited_once_with("gameLimit", 2)
        assert "on 4 users" in capsys.readouterr().out

    async def test_backfill(self, maintenance, capsys):
        args = build_parser().parse_args(["backfill"])
        assert await run(args, maintenance) == 0
        out = capsys.readouterr().out
        assert "Backfilled subscriptionExpiry on 2 users" in out
        assert "Backfilled gameLimit on 1 users" in out

    async def test_sweep(self, maintenance, capsys):
        args = build_parser().parse_args(["sweep"])
        assert await run(args, maintenance) == 0
        assert "Deleted 3 abandoned signups" in capsys.readouterr().out
