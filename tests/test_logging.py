from __future__ import annotations

from team_schedule.config.settings import settings
from team_schedule.logging.setup import MASK, sensitive_data_filter


def test_supabase_key_masked_in_message() -> None:
    record = {"message": f"Connecting with {settings.supabase_key}", "extra": {}}

    assert sensitive_data_filter(record) is True
    assert settings.supabase_key not in record["message"]
    assert MASK in record["message"]


def test_sensitive_extras_masked() -> None:
    record = {
        "message": "Request sent",
        "extra": {"access_token": "eyJhbGciOiJIUzI1NiJ9", "jwt": "short", "table": "schedules"},
    }

    sensitive_data_filter(record)

    assert record["extra"]["access_token"] == "eyJh****NiJ9"
    assert record["extra"]["jwt"] == MASK
    assert record["extra"]["table"] == "schedules"
