import json
import shutil
import subprocess
import sys
from pathlib import Path

BOOKINGS = [
    {"_id": "1", "status": "Pending", "puja_date": "2024-01-10", "puja_time": "09:00"},
    {"_id": "2", "status": "Accepted", "puja_date": "2024-01-10"},
    {"_id": "3", "status": "completed", "date": "2024-02-05"},
    {"_id": "4", "status": None},
]


def write_fixtures():
    base = Path("out")
    if base.exists():
        shutil.rmtree(base)
    json_dir = base / "json"
    json_dir.mkdir(parents=True)
    with (json_dir / "api_bookings.json").open("w", encoding="utf-8") as f:
        json.dump(BOOKINGS, f)


def test_offline_history_cli():
    write_fixtures()
    result = subprocess.run(
        [sys.executable, "-m", "pandit_booking.cli", "history", "--offline"],
        check=True,
        capture_output=True,
        text=True,
    )
    lines = result.stdout.splitlines()
    assert lines[0] == "Bookings per Month"
    assert "2024-01 ## 2" in lines
    assert "2024-02 # 1" in lines
    assert "Total bookings: 4  Matching filters: 4" in lines


def test_offline_calendar_cli():
    write_fixtures()
    result = subprocess.run(
        [sys.executable, "-m", "pandit_booking.cli", "calendar", "--offline", "--month", "2024-01"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "January 2024" in result.stdout
    assert "10*" in result.stdout


def test_offline_admin_and_pandits_cli():
    write_fixtures()
    json_dir = Path("out") / "json"
    (json_dir / "api_users.json").write_text(json.dumps([{"_id": "u1", "name": "Asha"}]))
    (json_dir / "api_pandits.json").write_text(
        json.dumps([{"_id": "p1", "name": "Ramesh Shastri", "is_verified": True}])
    )
    result = subprocess.run(
        [sys.executable, "-m", "pandit_booking.cli", "admin", "--offline"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "Devotees: 1  Pandits: 1  Bookings: 4" in result.stdout

    result = subprocess.run(
        [sys.executable, "-m", "pandit_booking.cli", "pandits", "--offline"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "Pandits: 1  Verified: 1  Pending: 0" in result.stdout
    assert "Ramesh Shastri" in result.stdout
