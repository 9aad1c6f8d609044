"""Shared fixtures: a small but complete assistant data directory."""

import json
from pathlib import Path

import pytest

T0_MS = 1704067200000  # 2024-01-01T00:00:00Z

STATS_PAYLOAD = {
    "totalSessions": 2,
    "totalMessages": 40,
    "firstSessionDate": "2024-01-15T00:00:00Z",
}


def _write_jsonl(path: Path, entries: list) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for entry in entries:
            f.write((entry if isinstance(entry, str) else json.dumps(entry)) + "\n")


def _write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def claude_dir(tmp_path: Path) -> Path:
    """Every source kind, with sessions that exercise each precedence rule.

    - s-hist: history only, project /work/code/alpha
    - s-tx: transcript plus history plus facet, same project
    - s-empty: snapshot-only transcript with no history (dropped)
    - s-idx: index only, project /work/beta
    - s-orphan: facet only
    """
    root = tmp_path / ".claude"

    _write_jsonl(
        root / "history.jsonl",
        [
            {"display": "fix bug", "timestamp": T0_MS, "project": "/work/code/alpha", "sessionId": "s-hist"},
            {"display": "add test", "timestamp": T0_MS + 30 * 60_000, "project": "/work/code/alpha", "sessionId": "s-hist"},
            "{not json",
            {"display": "hello from history", "timestamp": T0_MS + 86_400_000, "project": "/work/code/alpha", "sessionId": "s-tx"},
        ],
    )

    alpha = root / "projects" / "-work-code-alpha"
    _write_jsonl(
        alpha / "s-tx.jsonl",
        [
            {
                "type": "user",
                "timestamp": "2024-02-01T10:00:00Z",
                "cwd": "/work/code/alpha",
                "gitBranch": "main",
                "message": {"role": "user", "content": "Add a login page"},
            },
            {
                "type": "assistant",
                "timestamp": "2024-02-01T10:45:00Z",
                "message": {
                    "model": "claude-sonnet-4",
                    "usage": {"input_tokens": 120, "output_tokens": 500},
                    "content": [
                        {"type": "tool_use", "id": "t1", "name": "Bash", "input": {"command": "git commit -m x"}}
                    ],
                },
            },
        ],
    )
    _write_jsonl(
        alpha / "s-empty.jsonl",
        [{"type": "file-history-snapshot", "timestamp": "2024-02-02T00:00:00Z"}],
    )

    _write_json(
        root / "projects" / "-work-beta" / "sessions-index.json",
        {
            "version": 1,
            "entries": [
                {
                    "sessionId": "s-idx",
                    "projectPath": "/work/beta",
                    "created": "2024-03-01T09:00:00Z",
                    "modified": "2024-03-01T10:30:00Z",
                    "messageCount": 5,
                    "firstPrompt": "No prompt",
                    "summary": "Beta work",
                }
            ],
        },
    )

    facets = root / "usage-data" / "facets"
    _write_json(
        facets / "s-tx.json",
        {"session_id": "s-tx", "outcome": "achieved", "friction_counts": {"slow": 1}},
    )
    _write_json(facets / "s-orphan.json", {"outcome": "partial"})

    _write_json(root / "stats-cache.json", STATS_PAYLOAD)
    return root
