"""yaml_io 单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from deployer.utils import yaml_io
from deployer.utils.yaml_io import load_yaml, save_yaml


class TestLoadYaml:
    def test_missing_file_returns_empty(self, tmp_path: Path) -> None:
        assert load_yaml(tmp_path / "nope.yml") == {}

    def test_empty_file_returns_empty(self, tmp_path: Path) -> None:
        p = tmp_path / "empty.yml"
        p.write_text("")
        assert load_yaml(p) == {}

    def test_non_mapping_returns_empty(self, tmp_path: Path) -> None:
        p = tmp_path / "list.yml"
        p.write_text("- a\n- b\n")
        assert load_yaml(p) == {}

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.yml"
        p.write_text("key: [unclosed")
        with pytest.raises(yaml.YAMLError):
            load_yaml(p)

    def test_size_limit(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(yaml_io, "MAX_YAML_SIZE", 10)
        p = tmp_path / "big.yml"
        p.write_text("key: " + "x" * 100)
        with pytest.raises(ValueError, match="过大"):
            load_yaml(p)


class TestSaveYaml:
    def test_creates_parent_and_keeps_order(self, tmp_path: Path) -> None:
        p = tmp_path / "sub" / "out.yml"
        save_yaml(p, {"z": 1, "a": "中文"})
        text = p.read_text(encoding="utf-8")
        assert text.index("z:") < text.index("a:")
        assert "中文" in text
        assert load_yaml(p) == {"z": 1, "a": "中文"}

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        save_yaml(tmp_path / "out.yml", {"a": 1})
        assert [f.name for f in tmp_path.iterdir()] == ["out.yml"]
