"""
Thinkify - Client configuration tests
"""
import json

from thinkify_client.config import ClientConfig


class TestClientConfig:
    """Layering of defaults, config file and environment"""

    def test_session_file_lives_in_config_dir(self, tmp_path):
        config = ClientConfig(config_dir=str(tmp_path))
        assert config.session_file == str(tmp_path / 'session.json')

    def test_absolute_session_file_kept(self, tmp_path):
        target = tmp_path / 'elsewhere' / 's.json'
        config = ClientConfig(config_dir=str(tmp_path), session_file=str(target))
        assert config.session_file == str(target)

    def test_file_values_applied_and_unknown_keys_ignored(self, tmp_path):
        (tmp_path / 'config.json').write_text(json.dumps({'timeout': 5, 'colour': 'blue'}))
        config = ClientConfig(config_dir=str(tmp_path))
        config.load_from_file()
        assert config.timeout == 5
        assert not hasattr(config, 'colour')

    def test_config_dir_from_file_moves_default_session_file(self, tmp_path):
        moved = tmp_path / 'moved'
        (tmp_path / 'config.json').write_text(json.dumps({'config_dir': str(moved)}))
        config = ClientConfig(config_dir=str(tmp_path))
        config.load_from_file()

        assert config.session_file == str(moved / 'session.json')

    def test_relative_session_file_from_file_resolved(self, tmp_path):
        (tmp_path / 'config.json').write_text(json.dumps({'session_file': 'login.json'}))
        config = ClientConfig(config_dir=str(tmp_path))
        config.load_from_file()

        assert config.session_file == str(tmp_path / 'login.json')

    def test_explicit_session_file_survives_config_dir_change(self, tmp_path):
        target = tmp_path / 'keep' / 's.json'
        config = ClientConfig(config_dir=str(tmp_path), session_file=str(target))
        config.update({'config_dir': str(tmp_path / 'moved')})

        assert config.session_file == str(target)

    def test_save_then_load(self, tmp_path):
        config = ClientConfig(config_dir=str(tmp_path), api_base_url='http://school.test/api/v1')
        config.save_to_file()

        fresh = ClientConfig(config_dir=str(tmp_path))
        fresh.load_from_file()
        assert fresh.api_base_url == 'http://school.test/api/v1'

    def test_env_overrides(self, tmp_path):
        config = ClientConfig(config_dir=str(tmp_path))
        config.apply_env({
            'THINKIFY_API_URL': 'http://env.test/api/v1',
            'THINKIFY_SESSION_DAYS': '3',
            'THINKIFY_VERIFY_SESSION': 'false',
        })
        assert config.api_base_url == 'http://env.test/api/v1'
        assert config.session_expiry_days == 3
        assert config.verify_session is False

    def test_load_default_uses_config_dir_env(self, tmp_path, monkeypatch):
        (tmp_path / 'config.json').write_text(json.dumps({'timeout': 12.5}))
        monkeypatch.setenv('THINKIFY_CONFIG_DIR', str(tmp_path))
        monkeypatch.setenv('THINKIFY_API_URL', 'http://override.test/api/v1')

        config = ClientConfig.load_default()

        assert config.timeout == 12.5
        assert config.api_base_url == 'http://override.test/api/v1'
