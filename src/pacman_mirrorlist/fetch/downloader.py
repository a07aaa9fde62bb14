#!/usr/bin/env python3

import os
import logging
from typing import Optional
from urllib.parse import urlencode
import requests

from .. import __version__
from ..config.manager import ConfigManager
from ..exceptions import DownloadError

logger = logging.getLogger(__name__)

class MirrorlistDownloader:
    def __init__(self, config_manager: ConfigManager, session: Optional[requests.Session] = None):
        self.config_manager = config_manager
        self.config = config_manager.get_config()
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': f"pacman-mirrorlist/{__version__}"})

    def build_url(self) -> str:
        """Mirror list URL with the configured country, protocol and IP version filters"""
        query = urlencode(self.config_manager.get_query_params())
        if not query:
            return self.config.mirrorlist_url
        return f"{self.config.mirrorlist_url}?{query}"

    def download(self, dest_dir: str) -> str:
        """Download the mirror list into dest_dir and return the written file path"""
        url = self.build_url()
        dest_path = os.path.join(dest_dir, "mirrorlist")
        logger.info(f"Downloading new mirrorlist to {dest_dir}")
        logger.debug(f"Requesting {url}")

        try:
            response = self.session.get(url, timeout=self.config.request_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise DownloadError(f"Failed to download mirrorlist from {url}: {e}") from e

        if not response.content:
            raise DownloadError(f"Mirrorlist service returned an empty response for {url}")

        with open(dest_path, 'wb') as f:
            f.write(response.content)

        if not os.path.isfile(dest_path) or os.path.getsize(dest_path) == 0:
            raise DownloadError(f"Failed to write mirrorlist file to {dest_path}")

        logger.info(f"Successfully downloaded new mirrorlist file ({len(response.content)} bytes)")
        return dest_path
