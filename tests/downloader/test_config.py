"""DownloaderConfig 加载测试"""

from ipaharbor.downloader import (
    IpatoolDownloader,
    ScriptedDownloader,
    create_downloader,
    load_downloader_config,
)
from ipaharbor.downloader.config import DownloaderConfig


class TestLoadDownloaderConfig:
    def test_defaults(self):
        config = load_downloader_config()
        assert config.ipatool_path == "bin/ipatool"
        assert config.keychain_passphrase.get_secret_value() == ""
        assert config.mode == "ipatool"
        assert config.simulate_line_delay == 0.2

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("IPAHARBOR_IPATOOL_PATH", "/opt/ipatool")
        monkeypatch.setenv("KEYCHAIN_PASSPHRASE", "s3cret")
        monkeypatch.setenv("IPAHARBOR_DOWNLOADER_MODE", "simulate")
        monkeypatch.setenv("IPAHARBOR_SIMULATE_LINE_DELAY", "0")

        config = load_downloader_config()
        assert config.ipatool_path == "/opt/ipatool"
        assert config.keychain_passphrase.get_secret_value() == "s3cret"
        assert config.mode == "simulate"
        assert config.simulate_line_delay == 0.0

    def test_invalid_mode_falls_back(self, monkeypatch):
        monkeypatch.setenv("IPAHARBOR_DOWNLOADER_MODE", "turbo")
        assert load_downloader_config().mode == "ipatool"

    def test_invalid_line_delay_falls_back(self, monkeypatch):
        monkeypatch.setenv("IPAHARBOR_SIMULATE_LINE_DELAY", "fast")
        assert load_downloader_config().simulate_line_delay == 0.2

    def test_passphrase_not_in_repr(self, monkeypatch):
        monkeypatch.setenv("KEYCHAIN_PASSPHRASE", "s3cret")
        config = load_downloader_config()
        assert "s3cret" not in repr(config)
        assert "s3cret" not in config.model_dump_json()


class TestCreateDownloader:
    def test_ipatool_mode(self):
        downloader = create_downloader(DownloaderConfig(ipatool_path="/opt/ipatool"))
        assert isinstance(downloader, IpatoolDownloader)
        assert downloader.executable == "/opt/ipatool"

    def test_simulate_mode(self):
        downloader = create_downloader(DownloaderConfig(mode="simulate", simulate_line_delay=0))
        assert isinstance(downloader, ScriptedDownloader)
        assert downloader.default_script.line_delay == 0
        assert downloader.default_script.exit_code == 0
