from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.config import CompanionConfig, load_config
from src.constants import STORE_FILE


class TestCompanionConfig:
    def test_defaults_are_anonymous(self):
        config = CompanionConfig()
        assert config.channels == []
        assert config.store_path == STORE_FILE
        assert config.replay_on_rotation is False
        assert config.load_badges is True
        assert config.credential().is_anonymous

    def test_channels_sanitized_deduped_sorted(self):
        config = CompanionConfig(channels=["#XQC", "forsen", " Forsen ", "", 5])
        assert config.channels == ["forsen", "xqc"]

    def test_channels_from_delimited_string(self):
        config = CompanionConfig.from_dict({"channels": "#b; a,, c"})
        assert config.channels == ["a", "b", "c"]

    def test_channels_must_be_list_or_string(self):
        with pytest.raises(ValueError):
            CompanionConfig(channels={"forsen": 1})

    def test_username_lowercased(self):
        assert CompanionConfig(username=" Bob ").username == "bob"

    def test_blank_store_path_rejected(self):
        with pytest.raises(ValueError):
            CompanionConfig(store_path="   ")

    def test_credential_strips_oauth_prefix(self):
        config = CompanionConfig(client_id="cid", oauth_token="oauth:tok123", username="Bob")
        cred = config.credential()
        assert cred.oauth_token == "tok123"
        assert cred.username == "bob"
        assert cred.client_id == "cid"

    def test_to_dict_round_trips(self):
        config = CompanionConfig(channels=["forsen"], ring_limit=10)
        assert CompanionConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path: Path):
        config = load_config(str(tmp_path / "absent.json"), environ={})
        assert config == CompanionConfig()

    def test_file_values(self, tmp_path: Path):
        path = tmp_path / "conf.json"
        path.write_text(json.dumps({"username": "Bob", "channels": ["#Forsen"], "ring_limit": 50}))
        config = load_config(str(path), environ={})
        assert config.username == "bob"
        assert config.channels == ["forsen"]
        assert config.ring_limit == 50

    def test_environment_overrides_file(self, tmp_path: Path):
        path = tmp_path / "conf.json"
        path.write_text(json.dumps({"oauth_token": "fromfile", "channels": ["a"]}))
        env = {"TWITCH_OAUTH_TOKEN": "fromenv", "TWITCH_CHANNELS": "b,c", "TWITCH_USERNAME": ""}
        config = load_config(str(path), environ=env)
        assert config.oauth_token == "fromenv"
        assert config.channels == ["b", "c"]
        assert config.username == ""

    def test_path_from_environment(self, tmp_path: Path):
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"user_id": "42"}))
        config = load_config(environ={"TWITCH_CONF_FILE": str(path)})
        assert config.user_id == "42"

    def test_invalid_json_raises(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{oops")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_config(str(path), environ={})

    def test_non_object_raises(self, tmp_path: Path):
        path = tmp_path / "list.json"
        path.write_text("[]")
        with pytest.raises(ValueError, match="JSON object"):
            load_config(str(path), environ={})

    def test_validation_error_becomes_value_error(self, tmp_path: Path):
        path = tmp_path / "conf.json"
        path.write_text(json.dumps({"ring_limit": "lots"}))
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(str(path), environ={})
