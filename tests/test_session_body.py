"""Tests for burrow.sessions.body — the persisted session record."""

from datetime import UTC, datetime, timedelta

import pytest

from burrow.errors import SessionBackendError
from burrow.sessions.body import SessionBody

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _body(**overrides) -> SessionBody:
    fields = {
        "ip": "10.0.0.1",
        "hostname": "example.com",
        "user_agent": "Mozilla/5.0",
        "last_check": NOW,
    }
    fields.update(overrides)
    return SessionBody(**fields)


class TestExpiry:
    def test_exactly_on_the_boundary_is_valid(self) -> None:
        body = _body(last_check=NOW - timedelta(minutes=30))
        assert not body.is_expired(30, NOW)

    def test_one_microsecond_past_the_boundary_is_expired(self) -> None:
        body = _body(last_check=NOW - timedelta(minutes=30, microseconds=1))
        assert body.is_expired(30, NOW)

    def test_zero_minutes_expires_anything_older_than_now(self) -> None:
        assert not _body().is_expired(0, NOW)
        assert _body(last_check=NOW - timedelta(seconds=1)).is_expired(0, NOW)


class TestMatches:
    def test_same_client(self) -> None:
        assert _body().matches(hostname="example.com", user_agent="Mozilla/5.0")

    def test_other_user_agent(self) -> None:
        assert not _body().matches(hostname="example.com", user_agent="curl/8.0")

    def test_other_hostname(self) -> None:
        assert not _body().matches(hostname="evil.test", user_agent="Mozilla/5.0")

    def test_ip_is_not_part_of_the_binding(self) -> None:
        body = _body(ip="192.168.1.1")
        assert body.matches(hostname="example.com", user_agent="Mozilla/5.0")


class TestSerialization:
    def test_camel_case_keys(self) -> None:
        raw = _body(data={"visits": 3}).to_dict()
        assert raw == {
            "ip": "10.0.0.1",
            "hostname": "example.com",
            "userAgent": "Mozilla/5.0",
            "lastCheck": "2024-05-01T12:00:00.000000+00:00",
            "data": {"visits": 3},
        }

    def test_from_dict_restores_fields(self) -> None:
        body = SessionBody.from_dict(_body(data={"cart": [1, 2]}).to_dict())
        assert body.user_agent == "Mozilla/5.0"
        assert body.last_check == NOW
        assert body.data == {"cart": [1, 2]}

    def test_naive_timestamp_is_utc(self) -> None:
        raw = _body().to_dict()
        raw["lastCheck"] = "2024-05-01T12:00:00"
        assert SessionBody.from_dict(raw).last_check == NOW

    @pytest.mark.parametrize(
        "raw",
        [
            [],
            "text",
            {"ip": "1.2.3.4"},
            {"ip": "", "hostname": "", "userAgent": "", "lastCheck": "yesterday", "data": {}},
            {"ip": "", "hostname": "", "userAgent": "", "lastCheck": "2024-05-01T12:00:00", "data": []},
        ],
    )
    def test_malformed(self, raw: object) -> None:
        with pytest.raises(SessionBackendError, match="Malformed session body"):
            SessionBody.from_dict(raw)
