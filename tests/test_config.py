#!/usr/bin/env python
import json

import pytest

from webdavclient import config


class TestExpandConfigSection:
    cfg = {
        "default": {"webdav_url": "http://a/"},
        "work_1": {"webdav_url": "http://b/"},
        "work_2": {"webdav_url": "http://c/"},
        "old": {"webdav_url": "http://d/", "disable": True},
        "all": {"contains": ["default", "work_*", "all"]},
    }

    def test_plain(self):
        assert config.expand_config_section(self.cfg, "default") == ["default"]

    def test_disabled(self):
        assert config.expand_config_section(self.cfg, "old") == []
        assert "old" not in config.expand_config_section(self.cfg, "*")

    def test_glob(self):
        assert config.expand_config_section(self.cfg, "work_*") == ["work_1", "work_2"]

    def test_meta_section(self):
        assert config.expand_config_section(self.cfg, "all") == ["default", "work_1", "work_2"]

    def test_meta_sections_referring_to_each_other(self):
        cfg = {
            "a": {"contains": ["b", "x"]},
            "b": {"contains": ["a", "y"]},
            "x": {},
            "y": {},
        }
        assert config.expand_config_section(cfg, "a") == ["y", "x"]


class TestConfigSection:
    def test_inherits(self):
        cfg = {
            "default": {"webdav_url": "http://a/", "webdav_user": "alice"},
            "other": {"inherits": "default", "webdav_url": "http://b/"},
        }
        assert config.config_section(cfg, "other") == {
            "inherits": "default",
            "webdav_url": "http://b/",
            "webdav_user": "alice",
        }

    def test_missing(self):
        assert config.config_section({}, "nothing") == {}

    def test_connection_params(self):
        section = {
            "webdav_url": "http://a/",
            "webdav_user": "alice",
            "webdav_pass": "secret",
            "webdav_ssl_verify_cert": False,
            "webdav_headers": None,
            "inherits": "x",
        }
        assert config.connection_params(section) == {
            "url": "http://a/",
            "username": "alice",
            "password": "secret",
            "ssl_verify_cert": False,
        }


class TestReadConfig:
    def test_json(self, tmp_path):
        fn = tmp_path / "config.json"
        fn.write_text(json.dumps({"default": {"webdav_url": "http://a/"}}))
        assert config.read_config(str(fn)) == {"default": {"webdav_url": "http://a/"}}

    def test_missing_file(self, tmp_path):
        assert config.read_config(str(tmp_path / "nothing.json")) == {}

    def test_default_locations(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        cfgdir = tmp_path / ".config" / "webdavclient"
        cfgdir.mkdir(parents=True)
        (cfgdir / "config.json").write_text(json.dumps({"default": {"webdav_url": "http://a/"}}))
        assert config.read_config(None)["default"]["webdav_url"] == "http://a/"

    def test_broken_file(self, tmp_path, caplog):
        fn = tmp_path / "config.json"
        fn.write_text('{"default": {"webdav_url": ')
        assert config.read_config(str(fn)) == {}
        assert "config.json" in caplog.text

    def test_yaml(self, tmp_path):
        pytest.importorskip("yaml")
        fn = tmp_path / "config.yaml"
        fn.write_text("default:\n  webdav_url: http://a/\n")
        assert config.read_config(str(fn)) == {"default": {"webdav_url": "http://a/"}}
