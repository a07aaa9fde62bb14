#!/usr/bin/env python3

import logging
from dataclasses import dataclass
from typing import Optional

from .config.manager import ConfigManager
from .exceptions import MirrorlistError, MirrorlistFormatError
from .fetch.downloader import MirrorlistDownloader
from .mirrorlist.parser import (
    clean_mirrorlist_file, get_mirrorlist_date, mirrorlist_contains_date, list_servers
)
from .storage.manager import StorageManager

logger = logging.getLogger(__name__)

UPDATED = "updated"
UP_TO_DATE = "up-to-date"
UPDATE_AVAILABLE = "update-available"
FAILED = "failed"

@dataclass
class UpdateResult:
    status: str
    new_date: Optional[str] = None
    server_count: int = 0
    mirrorlist_path: Optional[str] = None
    backup_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (UPDATED, UPDATE_AVAILABLE)

class MirrorlistUpdater:
    def __init__(self, config_manager: ConfigManager,
                 downloader: Optional[MirrorlistDownloader] = None,
                 storage_manager: Optional[StorageManager] = None):
        self.config_manager = config_manager
        self.config = config_manager.get_config()
        self.downloader = downloader or MirrorlistDownloader(config_manager)
        self.storage_manager = storage_manager or StorageManager(config_manager)

    def _fetch_and_compare(self) -> UpdateResult:
        """Download, clean and date-check a fresh list in the scratch directory"""
        temp_dir = self.storage_manager.create_temp_dir()
        new_mirrorlist = self.downloader.download(temp_dir)
        clean_mirrorlist_file(new_mirrorlist)

        new_date = get_mirrorlist_date(new_mirrorlist)
        if not new_date:
            raise MirrorlistFormatError(
                f"Downloaded file has no generation date on line 3: {new_mirrorlist}"
            )
        logger.info(f"Date of new mirrorlist: {new_date}")

        result = UpdateResult(
            status=UPDATE_AVAILABLE,
            new_date=new_date,
            server_count=len(list_servers(new_mirrorlist)),
            mirrorlist_path=new_mirrorlist,
        )

        if mirrorlist_contains_date(new_date, self.config.mirrorlist_path):
            logger.info("Date is the same, the installed mirrorlist is current")
            result.status = UP_TO_DATE
        else:
            logger.info("We have a newer mirrorlist downloaded. Continuing.")

        return result

    def check(self) -> UpdateResult:
        """Report whether the service has a newer list without installing it"""
        try:
            result = self._fetch_and_compare()
            result.mirrorlist_path = None
            return result
        except (MirrorlistError, OSError) as e:
            logger.error(str(e))
            return UpdateResult(status=FAILED, error=str(e))
        finally:
            self.storage_manager.clean_temp_dir()

    def update(self, make_backup: bool = False) -> UpdateResult:
        """Replace the installed mirror list if the downloaded one is newer"""
        try:
            result = self._fetch_and_compare()
            if result.status == UP_TO_DATE:
                result.mirrorlist_path = self.config.mirrorlist_path
                return result

            if make_backup:
                logger.info("Creating a backup")
            else:
                logger.info("No backup being created")

            install_result = self.storage_manager.replace_mirrorlist(
                result.mirrorlist_path, make_backup=make_backup
            )
            result.status = UPDATED
            result.mirrorlist_path = install_result['mirrorlist_path']
            result.backup_path = install_result['backup_path']
            return result

        except (MirrorlistError, OSError) as e:
            logger.error(str(e))
            return UpdateResult(status=FAILED, error=str(e))
        finally:
            self.storage_manager.clean_temp_dir()
