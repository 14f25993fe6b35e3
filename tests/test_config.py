"""Tests for watch configuration loading."""

from pathlib import Path

import pytest

from hotloop.config import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_POLL_INTERVAL, ConfigError, find_pyproject, load_config


def write_pyproject(directory: Path, body: str) -> Path:
    path = directory / "pyproject.toml"
    path.write_text(body)
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self):
        config = load_config()

        assert config.poll_interval == DEFAULT_POLL_INTERVAL == 0.5
        assert config.search_paths == []
        assert config.exclude_patterns == list(DEFAULT_EXCLUDE_PATTERNS)
        assert config.source is None

    def test_defaults_without_table(self, tmp_path: Path):
        path = write_pyproject(tmp_path, '[project]\nname = "demo"\n')

        config = load_config(path)

        assert config.poll_interval == 0.5
        assert config.source is None

    def test_reads_tool_table(self, tmp_path: Path):
        path = write_pyproject(
            tmp_path,
            '[tool.hotloop]\npoll_interval = 2\nsearch_paths = ["src"]\nexclude_patterns = ["generated"]\n',
        )

        config = load_config(path)

        assert config.poll_interval == 2.0
        assert config.search_paths == [(tmp_path / "src").resolve()]
        assert config.exclude_patterns == ["generated"]
        assert config.source == path

    def test_discovers_nearest_pyproject(self, tmp_path: Path):
        write_pyproject(tmp_path, "[tool.hotloop]\npoll_interval = 1.5\n")
        nested = tmp_path / "app" / "deep"
        nested.mkdir(parents=True)
        entry = nested / "main.py"
        entry.write_text("")

        assert find_pyproject(entry) == tmp_path / "pyproject.toml"
        assert load_config(start=entry).poll_interval == 1.5

    @pytest.mark.parametrize(
        "body",
        [
            "[tool.hotloop]\npoll_interval = 0\n",
            "[tool.hotloop]\npoll_interval = -1\n",
            "[tool.hotloop]\npoll_interval = 'fast'\n",
            "[tool.hotloop]\npoll_interval = true\n",
            "[tool.hotloop]\nsearch_paths = 'src'\n",
            "[tool.hotloop]\nexclude_patterns = [1, 2]\n",
            "[tool.hotloop]\nwatch_everything = true\n",
            "[tool]\nhotloop = 3\n",
            "[tool.hotloop\n",
        ],
    )
    def test_invalid_config_raises(self, tmp_path: Path, body: str):
        path = write_pyproject(tmp_path, body)

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        assert str(path) in str(exc_info.value)

    def test_unreadable_file_raises(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.toml")
