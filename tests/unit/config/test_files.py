"""Unit tests for YAML config files."""

from __future__ import annotations

from pathlib import Path

import pytest

from flcm_rollout.config.files import read_yaml, write_yaml
from flcm_rollout.config.validation import ConfigError


class TestReadYaml:
    def test_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "flags.yaml"
        path.write_text("flags:\n  a:\n    default: true\n", encoding="utf-8")
        assert read_yaml(path) == {"flags": {"a": {"default": True}}}

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert read_yaml(path) == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as info:
            read_yaml(tmp_path / "absent.yaml")
        assert info.value.source == str(tmp_path / "absent.yaml")
        assert info.value.detail["source"] == info.value.source

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("flags: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            read_yaml(path)

    def test_top_level_list(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            read_yaml(path)


class TestWriteYaml:
    def test_creates_parents_and_keeps_order(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "out.yaml"
        write_yaml(path, {"z": 1, "a": [1, 2]})
        assert path.read_text(encoding="utf-8").startswith("z: 1")
        assert read_yaml(path) == {"z": 1, "a": [1, 2]}
