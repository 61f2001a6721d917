"""CLI 入口测试 -- python -m ipaharbor.core"""

import json

from ipaharbor.core.__main__ import main


class TestCli:
    def test_no_command_prints_usage(self, capsys):
        assert main([]) == 1
        assert "list-files" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        assert main(["bogus"]) == 1
        assert "未知命令" in capsys.readouterr().out

    def test_list_files(self, monkeypatch, tmp_data_dir, capsys):
        monkeypatch.setenv("IPAHARBOR_DATA_DIR", str(tmp_data_dir))
        (tmp_data_dir / "1_2.ipa").write_bytes(b"abc")

        assert main(["list-files"]) == 0
        out = capsys.readouterr().out
        assert "1_2.ipa" in out
        assert "共 1 个文件，3 字节" in out

    def test_extract_metadata(self, monkeypatch, tmp_data_dir, build_ipa, capsys):
        monkeypatch.setenv("IPAHARBOR_DATA_DIR", str(tmp_data_dir))
        (tmp_data_dir / "1_2.ipa").write_bytes(build_ipa({"bundleDisplayName": "Demo"}))

        assert main(["extract-metadata", "1_2.ipa"]) == 0
        assert '"bundleDisplayName": "Demo"' in capsys.readouterr().out
        sidecar = json.loads((tmp_data_dir / "1_2.json").read_text(encoding="utf-8"))
        assert sidecar == {"bundleDisplayName": "Demo"}

    def test_extract_metadata_missing_file(self, monkeypatch, tmp_data_dir, capsys):
        monkeypatch.setenv("IPAHARBOR_DATA_DIR", str(tmp_data_dir))
        assert main(["extract-metadata", "9_9.ipa"]) == 1
        assert "提取失败" in capsys.readouterr().out

    def test_extract_metadata_requires_argument(self, capsys):
        assert main(["extract-metadata"]) == 1
