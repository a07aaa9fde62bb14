#!/usr/bin/env python3


class MirrorlistError(Exception):
    """Base class for mirror list update failures"""


class DownloadError(MirrorlistError):
    """The mirror list could not be fetched from the remote service"""


class MirrorlistFormatError(MirrorlistError):
    """A file does not look like a generated pacman mirror list"""


class InstallError(MirrorlistError):
    """The mirror list could not be written to its system location"""


class WorkspaceError(MirrorlistError):
    """The scratch directory for the download could not be prepared"""
