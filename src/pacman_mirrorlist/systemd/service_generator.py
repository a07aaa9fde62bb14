#!/usr/bin/env python3

import os
import sys
import shutil
import logging
import subprocess
from typing import Dict, List, Optional
from ..config.manager import ConfigManager

logger = logging.getLogger(__name__)

SERVICE_NAME = "pacman-mirrorlist"

class SystemdServiceGenerator:
    def __init__(self, config_manager: ConfigManager):
        self.config_manager = config_manager
        self.config = config_manager.get_config()
        self.service_dir = "/etc/systemd/system"
        self.user_service_dir = os.path.expanduser("~/.config/systemd/user")

    def _get_systemd_directory(self, user_mode: bool = False) -> str:
        return self.user_service_dir if user_mode else self.service_dir

    def _get_executable(self) -> List[str]:
        installed = shutil.which(SERVICE_NAME)
        if installed:
            return [installed]
        return [sys.executable, "-m", "pacman_mirrorlist.cli"]

    @staticmethod
    def _quote_exec_arg(arg: str) -> str:
        """Quote one ExecStart argument the way systemd splits command lines"""
        # systemd expands % specifiers and $VARIABLES inside quotes as well
        arg = arg.replace("%", "%%").replace("$", "$$")
        if arg and not any(c.isspace() or c in "\"'\\;" for c in arg):
            return arg
        escaped = arg.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'

    def generate_service_unit(self, make_backup: Optional[bool] = None) -> str:
        if make_backup is None:
            make_backup = self.config.make_backup

        command_parts = self._get_executable() + [
            "--config", self.config_manager.config_path,
        ]
        if make_backup:
            command_parts.append("--backup")
        command_parts.append("update")

        # Exit status 1 means the installed list was already current
        service_content = f"""[Unit]
Description=Refresh the pacman mirror list
Documentation=https://archlinux.org/mirrorlist/
After=network-online.target
Wants=network-online.target

[Service]
Type=oneshot
ExecStart={" ".join(self._quote_exec_arg(part) for part in command_parts)}
SuccessExitStatus=1
TimeoutStartSec=600
StandardOutput=journal
StandardError=journal
SyslogIdentifier={SERVICE_NAME}

[Install]
WantedBy=multi-user.target
"""

        return service_content

    def generate_timer_unit(self, schedule: Optional[str] = None) -> str:
        on_calendar = self._schedule_to_systemd_calendar(schedule or self.config.update_schedule)

        timer_content = f"""[Unit]
Description=Timer for refreshing the pacman mirror list
Requires={SERVICE_NAME}.service

[Timer]
OnCalendar={on_calendar}
RandomizedDelaySec=12h
Persistent=true
AccuracySec=1h

[Install]
WantedBy=timers.target
"""

        return timer_content

    def _schedule_to_systemd_calendar(self, schedule: str) -> str:
        schedule_mapping = {
            "hourly": "hourly",
            "daily": "daily",
            "weekly": "weekly",
            "monthly": "monthly",
        }

        return schedule_mapping.get(schedule, "weekly")

    def create_service_files(self, user_mode: bool = False, enable_timer: bool = True) -> Dict[str, str]:
        service_content = self.generate_service_unit()
        timer_content = self.generate_timer_unit()

        target_dir = self._get_systemd_directory(user_mode)
        service_file = os.path.join(target_dir, f"{SERVICE_NAME}.service")
        timer_file = os.path.join(target_dir, f"{SERVICE_NAME}.timer")

        try:
            os.makedirs(target_dir, exist_ok=True)

            with open(service_file, 'w') as f:
                f.write(service_content)
            logger.info(f"Created service file: {service_file}")

            if enable_timer:
                with open(timer_file, 'w') as f:
                    f.write(timer_content)
                logger.info(f"Created timer file: {timer_file}")

            return {
                'service_file': service_file,
                'timer_file': timer_file if enable_timer else None,
                'service_name': SERVICE_NAME
            }

        except PermissionError as e:
            error_msg = "Permission denied creating service files. Try running with sudo or use --user mode."
            logger.error(error_msg)
            raise PermissionError(error_msg) from e

    def start_timer(self, user_mode: bool = False) -> bool:
        """Reload systemd and enable the timer"""
        base_cmd = ["systemctl", "--user"] if user_mode else ["systemctl"]
        timer_name = f"{SERVICE_NAME}.timer"

        for args in (["daemon-reload"], ["enable", "--now", timer_name]):
            try:
                result = subprocess.run(base_cmd + args, capture_output=True, text=True, timeout=60)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.error(f"Error running {' '.join(base_cmd + args)}: {e}")
                return False

            if result.returncode != 0:
                logger.error(f"Failed to run {' '.join(base_cmd + args)}: {result.stderr.strip()}")
                return False

        logger.info(f"Started and enabled timer: {timer_name}")
        return True
