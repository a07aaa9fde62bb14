#!/usr/bin/env python3

import os
import shutil
import logging
from typing import Dict, Optional, Any
from datetime import datetime
from ..config.manager import ConfigManager
from ..exceptions import InstallError, WorkspaceError
from ..mirrorlist.parser import get_mirrorlist_date, list_servers

logger = logging.getLogger(__name__)

class StorageManager:
    def __init__(self, config_manager: ConfigManager):
        self.config_manager = config_manager
        self.config = config_manager.get_config()
        self.mirrorlist_path = self.config.mirrorlist_path
        self.backup_path = config_manager.get_backup_path()
        self.temp_dir = self.config.temp_dir

    def create_temp_dir(self) -> str:
        """Create an empty scratch directory for the downloaded mirror list"""
        logger.info(f"Attempting to create temporary directory at {self.temp_dir}")

        if os.path.isdir(self.temp_dir):
            logger.warning(f"Temporary directory already exists at {self.temp_dir}. Removing.")
            self.clean_temp_dir()

        try:
            os.makedirs(self.temp_dir, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(f"Failed to create temporary directory at {self.temp_dir}: {e}") from e

        if not os.path.isdir(self.temp_dir):
            raise WorkspaceError(f"Failed to create temporary directory at {self.temp_dir}")

        logger.debug(f"Created temporary directory at {self.temp_dir}")
        return self.temp_dir

    def clean_temp_dir(self) -> bool:
        """Remove the scratch directory, returning True when it is gone"""
        if os.path.isdir(self.temp_dir):
            try:
                shutil.rmtree(self.temp_dir)
            except OSError as e:
                logger.error(f"Failed to delete temporary directory at {self.temp_dir}: {e}")
                return False

        if os.path.isdir(self.temp_dir):
            logger.error(f"Failed to delete temporary directory at {self.temp_dir}")
            return False

        logger.debug(f"Removed temporary directory at {self.temp_dir}")
        return True

    def backup_mirrorlist(self) -> Optional[str]:
        """Copy the live mirror list to its single backup location"""
        logger.info(f"Backup option was selected, copying {self.mirrorlist_path} to {self.backup_path}")

        # The previous backup is only dropped once there is a live list to replace it
        if not os.path.isfile(self.mirrorlist_path):
            logger.warning(f"No existing mirrorlist at {self.mirrorlist_path}, keeping previous backup")
            return None

        if os.path.isfile(self.backup_path):
            logger.warning("Found previous backup. Removing.")
            os.remove(self.backup_path)

        shutil.copy2(self.mirrorlist_path, self.backup_path)
        return self.backup_path

    def _install_file(self, source_path: str) -> None:
        """Stage source_path next to the live list and swap it in with os.replace"""
        staging_path = f"{self.mirrorlist_path}.new"
        try:
            shutil.copy2(source_path, staging_path)
            os.replace(staging_path, self.mirrorlist_path)
        finally:
            if os.path.exists(staging_path):
                os.remove(staging_path)

    def replace_mirrorlist(self, source_path: str, make_backup: bool = False) -> Dict[str, Any]:
        """Install source_path as the live mirror list, optionally keeping a backup"""
        result = {
            'mirrorlist_path': self.mirrorlist_path,
            'backup_path': None,
        }

        try:
            if make_backup:
                result['backup_path'] = self.backup_mirrorlist()
            else:
                logger.info(f"Backup option was NOT selected, replacing current {self.mirrorlist_path}")

            self._install_file(source_path)

        except PermissionError as e:
            error_msg = f"Permission denied writing {e.filename or self.mirrorlist_path}. Try running with sudo."
            logger.error(error_msg)
            raise InstallError(error_msg) from e
        except OSError as e:
            raise InstallError(f"Failed to update the mirrorlist: {e}") from e

        if not os.path.isfile(self.mirrorlist_path):
            raise InstallError(f"Failed to update the mirrorlist at {self.mirrorlist_path}")

        logger.info("Successfully updated mirrorlist!")
        return result

    def restore_backup(self) -> str:
        """Put the backup copy back in place of the live mirror list"""
        if not os.path.isfile(self.backup_path):
            raise InstallError(f"No backup found at {self.backup_path}")

        try:
            self._install_file(self.backup_path)
        except PermissionError as e:
            error_msg = f"Permission denied writing {self.mirrorlist_path}. Try running with sudo."
            logger.error(error_msg)
            raise InstallError(error_msg) from e
        except OSError as e:
            raise InstallError(f"Failed to restore backup: {e}") from e

        logger.info(f"Restored backup from {self.backup_path} to {self.mirrorlist_path}")
        return self.mirrorlist_path

    def get_mirrorlist_info(self) -> Dict[str, Any]:
        """Describe the installed mirror list and its backup"""
        info = {
            'path': self.mirrorlist_path,
            'exists': os.path.isfile(self.mirrorlist_path),
            'generated_on': None,
            'server_count': 0,
            'last_modified': None,
            'backup_path': self.backup_path,
            'backup_exists': os.path.isfile(self.backup_path),
            'backup_generated_on': None,
            'backup_last_modified': None,
        }

        if info['exists']:
            try:
                info['generated_on'] = get_mirrorlist_date(self.mirrorlist_path)
                info['server_count'] = len(list_servers(self.mirrorlist_path))
                info['last_modified'] = datetime.fromtimestamp(
                    os.path.getmtime(self.mirrorlist_path)
                ).isoformat()
            except OSError as e:
                logger.error(f"Failed to read {self.mirrorlist_path}: {e}")

        if info['backup_exists']:
            try:
                info['backup_generated_on'] = get_mirrorlist_date(self.backup_path)
                info['backup_last_modified'] = datetime.fromtimestamp(
                    os.path.getmtime(self.backup_path)
                ).isoformat()
            except OSError as e:
                logger.error(f"Failed to read {self.backup_path}: {e}")

        return info
