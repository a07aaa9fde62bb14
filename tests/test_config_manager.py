#!/usr/bin/env python3

import os
import pytest
import yaml
from unittest.mock import patch

from pacman_mirrorlist.config.manager import ConfigManager, MirrorlistConfig


class TestMirrorlistConfig:
    """Test MirrorlistConfig dataclass functionality"""

    def test_mirrorlist_config_defaults(self):
        """Test defaults match the Arch Linux service and pacman layout"""
        with patch('os.path.expanduser', side_effect=lambda p: p.replace("~", "/home/user")):
            config = MirrorlistConfig()

        assert config.mirrorlist_url == "https://archlinux.org/mirrorlist/"
        assert config.countries == ["US"]
        assert config.protocols == ["http", "https"]
        assert config.ip_versions == [4]
        assert config.use_mirror_status is False
        assert config.mirrorlist_path == "/etc/pacman.d/mirrorlist"
        assert config.backup_suffix == ".bak"
        assert config.temp_dir == "/home/user/MIRRORLIST_TEMP"
        assert config.make_backup is False
        assert config.update_schedule == "weekly"

    def test_mirrorlist_config_expands_temp_dir(self):
        """Test a configured temp dir with ~ is expanded"""
        with patch('os.path.expanduser', side_effect=lambda p: p.replace("~", "/home/user")):
            config = MirrorlistConfig(temp_dir="~/scratch")

        assert config.temp_dir == "/home/user/scratch"

    def test_mirrorlist_config_custom_values(self):
        config = MirrorlistConfig(countries=["DE", "FR"], protocols=["https"], ip_versions=[4, 6])

        assert config.countries == ["DE", "FR"]
        assert config.protocols == ["https"]
        assert config.ip_versions == [4, 6]

    def test_mirrorlist_config_normalizes_log_level(self):
        assert MirrorlistConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("settings, message", [
        ({'log_level': "verbose"}, "log_level"),
        ({'protocols': ["ftp"]}, "protocols"),
        ({'ip_versions': [5]}, "ip_versions"),
        ({'countries': "US"}, "countries must be a list"),
        ({'request_timeout': 0}, "request_timeout"),
        ({'request_timeout': "soon"}, "request_timeout"),
        ({'make_backup': "yes"}, "make_backup"),
        ({'mirrorlist_path': None}, "mirrorlist_path"),
    ])
    def test_mirrorlist_config_rejects_invalid_values(self, settings, message):
        with pytest.raises(ValueError, match=message):
            MirrorlistConfig(**settings)


class TestConfigManager:
    """Test ConfigManager functionality"""

    def test_default_config_path_uses_xdg(self):
        with patch.dict(os.environ, {'XDG_CONFIG_HOME': '/tmp/xdg'}):
            manager = ConfigManager()

        assert manager.config_path == "/tmp/xdg/pacman-mirrorlist/config.yaml"

    def test_load_config_creates_template(self, temp_dir):
        """Test a missing config file is created from the template"""
        config_path = os.path.join(temp_dir, "nested", "config.yaml")
        manager = ConfigManager(config_path)

        config = manager.load_config()

        assert isinstance(config, MirrorlistConfig)
        assert os.path.exists(config_path)

        with open(config_path) as f:
            content = f.read()
        assert content.startswith("# Pacman Mirror List Configuration")

        # The template must be valid YAML that loads back to the same values
        data = yaml.safe_load(content)
        assert data['countries'] == ["US"]
        assert data['protocols'] == ["http", "https"]
        assert data['ip_versions'] == [4]
        assert data['mirrorlist_path'] == "/etc/pacman.d/mirrorlist"
        assert data['make_backup'] is False

    def test_load_config_from_file(self, temp_dir):
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, 'w') as f:
            yaml.dump({
                'countries': ['DE'],
                'protocols': ['https'],
                'make_backup': True,
                'temp_dir': os.path.join(temp_dir, "scratch"),
            }, f)

        manager = ConfigManager(config_path)
        config = manager.load_config()

        assert config.countries == ['DE']
        assert config.protocols == ['https']
        assert config.make_backup is True
        assert config.ip_versions == [4]  # default preserved

    def test_load_config_is_cached(self, temp_dir):
        manager = ConfigManager(os.path.join(temp_dir, "config.yaml"))

        assert manager.load_config() is manager.get_config()

    def test_load_config_empty_file(self, temp_dir):
        config_path = os.path.join(temp_dir, "config.yaml")
        open(config_path, 'w').close()

        config = ConfigManager(config_path).load_config()

        assert config.countries == ["US"]

    def test_load_config_unknown_key(self, temp_dir):
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, 'w') as f:
            f.write("countries: [US]\nmirror_speed: fast\n")

        with pytest.raises(ValueError, match="mirror_speed"):
            ConfigManager(config_path).load_config()

    def test_load_config_invalid_yaml(self, temp_dir):
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, 'w') as f:
            f.write("countries: [US\n")

        with pytest.raises(ValueError, match="Error loading config"):
            ConfigManager(config_path).load_config()

    def test_load_config_not_a_mapping(self, temp_dir):
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, 'w') as f:
            f.write("- US\n- DE\n")

        with pytest.raises(ValueError):
            ConfigManager(config_path).load_config()

    def test_load_config_invalid_value(self, temp_dir):
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, 'w') as f:
            f.write("log_level: verbose\n")

        with pytest.raises(ValueError, match="log_level must be one of"):
            ConfigManager(config_path).load_config()

    def test_save_config_without_load(self, temp_dir):
        manager = ConfigManager(os.path.join(temp_dir, "config.yaml"))

        with pytest.raises(ValueError, match="No config loaded"):
            manager.save_config()

    def test_save_config_existing_file(self, temp_dir):
        """Test an existing config is rewritten as plain YAML"""
        config_path = os.path.join(temp_dir, "config.yaml")
        manager = ConfigManager(config_path)
        manager.load_config()

        manager.get_config().countries = ["SE"]
        manager.save_config()

        reloaded = ConfigManager(config_path).load_config()
        assert reloaded.countries == ["SE"]

    def test_load_config_read_only_location(self, temp_dir):
        """Test defaults are still returned when the template cannot be written"""
        manager = ConfigManager(os.path.join(temp_dir, "config.yaml"))

        with patch.object(ConfigManager, 'save_config', side_effect=PermissionError("denied")):
            config = manager.load_config()

        assert config.countries == ["US"]

    def test_load_config_unwritable_location(self, temp_dir):
        """Test any OS error while writing the template falls back to defaults"""
        manager = ConfigManager(os.path.join(temp_dir, "config.yaml"))

        with patch.object(ConfigManager, 'save_config', side_effect=OSError(30, "Read-only file system")):
            config = manager.load_config()

        assert config.countries == ["US"]
        assert manager.get_config() is config

    def test_get_backup_path(self, config_manager, sample_config):
        assert config_manager.get_backup_path() == sample_config.mirrorlist_path + ".bak"

    def test_get_query_params_default_order(self, config_manager):
        assert config_manager.get_query_params() == [
            ("country", "US"),
            ("protocol", "http"),
            ("protocol", "https"),
            ("ip_version", "4"),
        ]

    def test_get_query_params_mirror_status(self, config_manager, sample_config):
        sample_config.use_mirror_status = True
        sample_config.countries = ["US", "CA"]

        params = config_manager.get_query_params()

        assert params[:2] == [("country", "US"), ("country", "CA")]
        assert params[-1] == ("use_mirror_status", "on")
