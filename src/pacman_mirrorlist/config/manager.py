#!/usr/bin/env python3

import os
import logging
import yaml
from typing import List, Optional
from dataclasses import dataclass, asdict, fields

logger = logging.getLogger(__name__)

DEFAULT_MIRRORLIST_URL = "https://archlinux.org/mirrorlist/"
DEFAULT_MIRRORLIST_PATH = "/etc/pacman.d/mirrorlist"
VALID_PROTOCOLS = ("http", "https")
VALID_IP_VERSIONS = (4, 6)
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

@dataclass
class MirrorlistConfig:
    mirrorlist_url: str = DEFAULT_MIRRORLIST_URL
    countries: List[str] = None
    protocols: List[str] = None  # 'http' and/or 'https'
    ip_versions: List[int] = None  # 4 and/or 6
    use_mirror_status: bool = False
    mirrorlist_path: str = DEFAULT_MIRRORLIST_PATH
    backup_suffix: str = ".bak"
    temp_dir: str = None
    request_timeout: int = 30
    make_backup: bool = False
    update_schedule: str = "weekly"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.countries is None:
            self.countries = ["US"]

        if self.protocols is None:
            self.protocols = ["http", "https"]

        if self.ip_versions is None:
            self.ip_versions = [4]

        if self.temp_dir is None:
            self.temp_dir = os.path.expanduser("~/MIRRORLIST_TEMP")
        elif isinstance(self.temp_dir, str):
            self.temp_dir = os.path.expanduser(self.temp_dir)

        self._validate()

    def _validate(self) -> None:
        for name in ("countries", "protocols", "ip_versions"):
            value = getattr(self, name)
            if not isinstance(value, list):
                raise ValueError(f"{name} must be a list, got {type(value).__name__}")

        unknown_protocols = [p for p in self.protocols if p not in VALID_PROTOCOLS]
        if unknown_protocols:
            raise ValueError(f"protocols must be http or https, got {unknown_protocols}")

        unknown_ip_versions = [v for v in self.ip_versions if v not in VALID_IP_VERSIONS]
        if unknown_ip_versions:
            raise ValueError(f"ip_versions must be 4 or 6, got {unknown_ip_versions}")

        for name in ("mirrorlist_url", "mirrorlist_path", "backup_suffix", "temp_dir", "update_schedule"):
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"{name} must be a string")

        for name in ("use_mirror_status", "make_backup"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be true or false")

        if (isinstance(self.request_timeout, bool)
                or not isinstance(self.request_timeout, (int, float))
                or self.request_timeout <= 0):
            raise ValueError(f"request_timeout must be a positive number, got {self.request_timeout!r}")

        if not isinstance(self.log_level, str) or self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got {self.log_level!r}"
            )
        self.log_level = self.log_level.upper()

class ConfigManager:
    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._get_default_config_path()
        self._config: Optional[MirrorlistConfig] = None

    def _get_default_config_path(self) -> str:
        xdg_config = os.environ.get('XDG_CONFIG_HOME', '~/.config')
        return os.path.expanduser(f"{xdg_config}/pacman-mirrorlist/config.yaml")

    def load_config(self) -> MirrorlistConfig:
        if self._config is not None:
            return self._config

        if not os.path.exists(self.config_path):
            self._config = MirrorlistConfig()
            try:
                self.save_config()
            except OSError as e:
                logger.warning(f"Could not write default config to {self.config_path}: {e}")
            return self._config

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}

            if not isinstance(data, dict):
                raise TypeError(f"expected a mapping, got {type(data).__name__}")

            known = {field.name for field in fields(MirrorlistConfig)}
            unknown = sorted(set(data) - known)
            if unknown:
                raise KeyError(f"unknown settings: {', '.join(unknown)}")

            self._config = MirrorlistConfig(**data)
            return self._config

        except Exception as e:
            raise ValueError(f"Error loading config from {self.config_path}: {e}")

    def save_config(self) -> None:
        if self._config is None:
            raise ValueError("No config loaded to save")

        # Ensure config directory exists
        config_dir = os.path.dirname(self.config_path)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        if not os.path.exists(self.config_path):
            self._create_config_template()
        else:
            config_dict = asdict(self._config)
            with open(self.config_path, 'w') as f:
                yaml.dump(config_dict, f, default_flow_style=False, indent=2)

    def _create_config_template(self) -> None:
        """Create a new config file with the settings documented inline"""
        config_dict = asdict(self._config)

        template = f"""# Pacman Mirror List Configuration
# Generated by pacman-mirrorlist

# Mirror list service and the filters sent with the request
mirrorlist_url: {config_dict['mirrorlist_url']}
countries:
"""
        for country in config_dict['countries']:
            template += f"- {country}\n"
        template += "protocols:\n"
        for protocol in config_dict['protocols']:
            template += f"- {protocol}\n"
        template += "ip_versions:\n"
        for ip_version in config_dict['ip_versions']:
            template += f"- {ip_version}\n"
        template += f"""use_mirror_status: {str(config_dict['use_mirror_status']).lower()}
request_timeout: {config_dict['request_timeout']}

# Installed mirror list and its single backup copy (<mirrorlist_path><backup_suffix>)
mirrorlist_path: {config_dict['mirrorlist_path']}
backup_suffix: {config_dict['backup_suffix']}
make_backup: {str(config_dict['make_backup']).lower()}

# Scratch directory for the downloaded list, removed after every run
temp_dir: {config_dict['temp_dir']}

# Timer schedule for setup-systemd: hourly, daily, weekly or monthly
update_schedule: {config_dict['update_schedule']}
log_level: {config_dict['log_level']}
"""

        with open(self.config_path, 'w') as f:
            f.write(template)

    def get_config(self) -> MirrorlistConfig:
        if self._config is None:
            return self.load_config()
        return self._config

    def get_backup_path(self) -> str:
        config = self.get_config()
        return f"{config.mirrorlist_path}{config.backup_suffix}"

    def get_query_params(self) -> List[tuple]:
        """Request parameters in the order the mirror list service documents them"""
        config = self.get_config()
        params = [("country", country) for country in config.countries]
        params += [("protocol", protocol) for protocol in config.protocols]
        params += [("ip_version", str(ip_version)) for ip_version in config.ip_versions]
        if config.use_mirror_status:
            params.append(("use_mirror_status", "on"))
        return params
