"""Tests for snapshot building and name translation."""

import pytest

from clusterinfo.models import PropertyRecord
from clusterinfo.snapshot import build_snapshot, translate

TRANSLATION = {"id.k8s.io": "clusterName", "clusterset.k8s.io": ""}


class TestTranslate:
    """Tests for property name translation."""

    def test_mapped_name(self) -> None:
        assert translate("id.k8s.io", TRANSLATION) == "clusterName"

    def test_unmapped_name_is_kept(self) -> None:
        assert translate("unmapped", TRANSLATION) == "unmapped"

    def test_empty_translation_is_kept(self) -> None:
        assert translate("clusterset.k8s.io", TRANSLATION) == "clusterset.k8s.io"


class TestBuildSnapshot:
    """Tests for build_snapshot."""

    def test_keys_are_translated_names(self) -> None:
        records = [
            PropertyRecord(name="id.k8s.io", value="cluster-7"),
            PropertyRecord(name="region", value="eu-west"),
            PropertyRecord(name="clusterset.k8s.io", value="set-1"),
        ]

        snapshot = build_snapshot(records, TRANSLATION)

        assert dict(snapshot) == {
            "clusterName": "cluster-7",
            "region": "eu-west",
            "clusterset.k8s.io": "set-1",
        }

    def test_later_record_wins_on_collision(self) -> None:
        records = [
            PropertyRecord(name="clusterName", value="from-plain-name"),
            PropertyRecord(name="id.k8s.io", value="from-translation"),
        ]

        snapshot = build_snapshot(records, TRANSLATION)

        assert dict(snapshot) == {"clusterName": "from-translation"}

    def test_empty_input(self) -> None:
        assert dict(build_snapshot([], TRANSLATION)) == {}

    def test_snapshot_is_immutable(self) -> None:
        snapshot = build_snapshot([PropertyRecord(name="a", value="1")], {})

        with pytest.raises(TypeError):
            snapshot["b"] = "2"  # type: ignore[index]
