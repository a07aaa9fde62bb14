#!/usr/bin/env python3

"""
Pacman Mirror List Updater

Refreshes /etc/pacman.d/mirrorlist from the Arch Linux mirror list
service, replacing it only when the generated list is newer.
"""

__version__ = "1.0.0"
__author__ = "Pacman Mirrorlist Project"
