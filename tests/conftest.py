import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# (1) Add repository root and src/ to sys.path to enable absolute imports
#     The root directory contains scripts/, src/, config/ and tests/.
ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


@pytest.fixture()
def fixed_now() -> datetime:
    """Reference time for due date checks."""
    return datetime(2025, 6, 1, tzinfo=timezone.utc)


@pytest.fixture()
def client_rows() -> list[dict]:
    return [
        {"ClientID": "C1", "ClientName": "Acme", "PriorityLevel": "3", "RequestedTaskIDs": "T1,T2"},
        {"ClientID": "C2", "ClientName": "Globex", "PriorityLevel": "5", "RequestedTaskIDs": "T3"},
    ]


@pytest.fixture()
def worker_rows() -> list[dict]:
    return [
        {
            "WorkerID": "W1",
            "WorkerName": "Ann",
            "Skills": "react,node",
            "AvailableSlots": "[1,2,3]",
            "MaxLoadPerPhase": "4",
            "WorkerGroup": "frontend",
        },
        {
            "WorkerID": "W2",
            "WorkerName": "Bob",
            "Skills": "python",
            "AvailableSlots": "1-3",
            "MaxLoadPerPhase": "4",
            "WorkerGroup": "backend",
        },
    ]


@pytest.fixture()
def task_rows() -> list[dict]:
    return [
        {
            "TaskID": "T1",
            "TaskName": "UI",
            "Duration": "1",
            "RequiredSkills": "React",
            "PreferredPhases": "1-2",
            "MaxConcurrent": "1",
        },
        {
            "TaskID": "T2",
            "TaskName": "API",
            "Duration": "2",
            "RequiredSkills": "Python",
            "PreferredPhases": "2,3",
            "MaxConcurrent": "1",
        },
        {
            "TaskID": "T3",
            "TaskName": "Glue",
            "Duration": "1",
            "RequiredSkills": "node",
            "PreferredPhases": "3",
            "MaxConcurrent": "1",
        },
    ]
