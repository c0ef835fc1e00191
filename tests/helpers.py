import copy
import json
from pathlib import Path

SAMPLE_SESSION = Path(__file__).resolve().parent.parent / "sample_session.json"


def write_session(tmp_path: Path, data: dict, filename: str = "session.json") -> Path:
    path = tmp_path / filename
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def clone_session(data: dict) -> dict:
    return copy.deepcopy(data)


def minimal_session(**overrides) -> dict:
    data = {
        "projection_horizon_years": 1,
        "members": [],
        "investments": [],
        "templates": [],
        "goal_funds": [],
        "debts": [],
        "redirect_rules": [],
    }
    data.update(overrides)
    return data
