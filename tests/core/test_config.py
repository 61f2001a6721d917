"""配置读取测试"""

from pathlib import Path

import pytest
from ipaharbor.core.config import (
    DEFAULT_MAX_CONCURRENT_DOWNLOADS,
    get_data_dir,
    get_file_list_broadcast_interval,
    get_max_concurrent_downloads,
    get_task_list_broadcast_interval,
)


class TestMaxConcurrentDownloads:
    def test_default(self):
        assert get_max_concurrent_downloads() == DEFAULT_MAX_CONCURRENT_DOWNLOADS == 2

    def test_override(self, monkeypatch):
        monkeypatch.setenv("IPAHARBOR_MAX_CONCURRENT_DOWNLOADS", "5")
        assert get_max_concurrent_downloads() == 5

    @pytest.mark.parametrize("raw", ["0", "-3", "two", ""])
    def test_invalid_falls_back(self, monkeypatch, raw):
        monkeypatch.setenv("IPAHARBOR_MAX_CONCURRENT_DOWNLOADS", raw)
        assert get_max_concurrent_downloads() == DEFAULT_MAX_CONCURRENT_DOWNLOADS


class TestDataDir:
    def test_default(self):
        assert get_data_dir() == Path("data")

    def test_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("IPAHARBOR_DATA_DIR", str(tmp_path))
        assert get_data_dir() == tmp_path


class TestBroadcastIntervals:
    def test_disabled_by_default(self):
        assert get_task_list_broadcast_interval() == 0.0
        assert get_file_list_broadcast_interval() == 0.0

    def test_override(self, monkeypatch):
        monkeypatch.setenv("IPAHARBOR_TASK_LIST_BROADCAST_INTERVAL", "1.5")
        assert get_task_list_broadcast_interval() == 1.5

    def test_invalid_and_negative(self, monkeypatch):
        monkeypatch.setenv("IPAHARBOR_TASK_LIST_BROADCAST_INTERVAL", "soon")
        monkeypatch.setenv("IPAHARBOR_FILE_LIST_BROADCAST_INTERVAL", "-1")
        assert get_task_list_broadcast_interval() == 0.0
        assert get_file_list_broadcast_interval() == 0.0
