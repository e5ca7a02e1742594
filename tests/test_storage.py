"""Tests for record sources and snapshot loading."""

import json
from datetime import datetime, timezone

import pytest
import yaml

from pm_analytics.domain import TaskStatus, UserRole
from pm_analytics.errors import NotFoundError, SnapshotError
from pm_analytics.storage import InMemoryRecordSource, load_snapshot

from conftest import make_project


class TestInMemoryRecordSource:

    def test_parses_camel_case_snapshot(self, source):
        assert [p.id for p in source.projects] == ["p1", "p2", "p3"]
        assert source.get_project("p1").team_ids == ["u2", "u3"]
        assert source.get_project("p1").required_skills == ["python", "react"]
        assert source.get_user("u2").productivity_score == 82

    def test_unknown_status_parses_to_none(self, source):
        tasks = {t.id: t for t in source.list_tasks()}

        assert tasks["t3"].status is None
        assert tasks["t2"].status == TaskStatus.IN_PROGRESS

    def test_missing_records_raise_not_found(self, source):
        with pytest.raises(NotFoundError, match="Project not found: nope"):
            source.get_project("nope")
        with pytest.raises(NotFoundError):
            source.get_user("nope")

    def test_filters_tasks_by_project_and_assignee(self, source):
        assert [t.id for t in source.list_tasks(project_ids=["p2"])] == ["t4"]
        assert [t.id for t in source.list_tasks(assignee_ids=["u3"])] == ["t2", "t3"]
        assert source.list_tasks(project_ids=[]) == []

    def test_created_window_is_inclusive(self, source):
        start = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)
        end = datetime(2024, 1, 20, 9, 0, tzinfo=timezone.utc)

        assert [p.id for p in source.list_projects(created_from=start, created_to=end)] == ["p1", "p2"]

    def test_records_without_creation_date_are_excluded_from_windows(self):
        source = InMemoryRecordSource([make_project()])
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)

        assert len(source.list_projects()) == 1
        assert source.list_projects(created_from=start) == []

    def test_filters_users(self, source):
        assert [u.id for u in source.list_users(roles=[UserRole.EMPLOYEE])] == ["u2", "u3"]
        assert "u4" not in [u.id for u in source.list_users(active_only=True)]
        assert [u.id for u in source.list_users(department="Engineering")] == ["u2", "u3"]

    def test_users_by_id_skips_unknown_ids(self, source):
        users = source.users_by_id(["u1", "ghost"])

        assert list(users) == ["u1"]

    def test_invalid_record_raises_snapshot_error(self):
        with pytest.raises(SnapshotError):
            InMemoryRecordSource.from_dict({"projects": [{"_id": "p1", "name": "No dates"}]})


class TestLoadSnapshot:

    def test_loads_json(self, tmp_path, sample_snapshot):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(sample_snapshot))

        source = load_snapshot(path)

        assert len(source.tasks) == 4
        assert len(source.users) == 5

    def test_loads_yaml(self, tmp_path, sample_snapshot):
        path = tmp_path / "snapshot.yaml"
        path.write_text(yaml.safe_dump(sample_snapshot))

        source = load_snapshot(path)

        assert source.get_project("p2").name == "Data Migration"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotError, match="Cannot read"):
            load_snapshot(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(SnapshotError, match="Cannot parse"):
            load_snapshot(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]")

        with pytest.raises(SnapshotError, match="mapping"):
            load_snapshot(path)
