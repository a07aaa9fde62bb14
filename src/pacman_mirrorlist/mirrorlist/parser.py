#!/usr/bin/env python3

"""
Helpers for the text format served by https://archlinux.org/mirrorlist/.

A generated list looks like::

    ##
    ## Arch Linux repository mirrorlist
    ## Generated on 2025-03-01
    ##

    ## United States
    #Server = https://mirror.example.com/archlinux/$repo/os/$arch

Every server line arrives commented out. The generation date sits at a
fixed position (line 3, fourth field) and is what decides whether a
download is newer than the installed list.
"""

import os
import re
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

COMMENTED_SERVER = "#Server"
ACTIVE_SERVER = "Server"
DATE_LINE_NUMBER = 3
DATE_FIELD_INDEX = 3

_SERVER_LINE = re.compile(r'^\s*Server\s*=\s*(\S+)')


def uncomment_servers(text: str) -> str:
    """Replace the first '#Server' on every line with 'Server'"""
    lines = text.splitlines(keepends=True)
    return "".join(line.replace(COMMENTED_SERVER, ACTIVE_SERVER, 1) for line in lines)


def clean_mirrorlist_file(path: str) -> int:
    """Uncomment the server lines of a mirror list in place.

    Returns the number of lines that were changed.
    """
    logger.info("Cleaning mirrorlist file")

    with open(path, 'r', encoding='utf-8', errors='surrogateescape', newline='') as f:
        original = f.read()

    cleaned = uncomment_servers(original)
    changed = sum(
        1 for before, after in zip(original.splitlines(), cleaned.splitlines())
        if before != after
    )

    with open(path, 'w', encoding='utf-8', errors='surrogateescape', newline='') as f:
        f.write(cleaned)

    logger.debug(f"Uncommented {changed} server lines in {path}")
    return changed


def get_mirrorlist_date(path: str) -> Optional[str]:
    """Return the generation date from line 3 of a mirror list, if present"""
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        for line_number, line in enumerate(f, start=1):
            if line_number == DATE_LINE_NUMBER:
                tokens = line.split()
                if len(tokens) > DATE_FIELD_INDEX:
                    return tokens[DATE_FIELD_INDEX]
                return None
    return None


def mirrorlist_contains_date(date: str, path: str) -> bool:
    """Check whether a mirror list mentions the given generation date"""
    if not os.path.isfile(path):
        logger.debug(f"No mirrorlist at {path} to compare against")
        return False

    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        return any(date in line for line in f)


def list_servers(path: str) -> List[str]:
    """URLs of the active 'Server = ...' entries, in file order"""
    servers = []
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        for line in f:
            match = _SERVER_LINE.match(line)
            if match:
                servers.append(match.group(1))
    return servers
