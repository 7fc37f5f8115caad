"""File locality detection.

Cloud sync clients (OneDrive, iCloud Drive, Dropbox and friends) leave
placeholder entries for files whose content has not been downloaded yet.
Reading the content of such a file triggers a download. These checks use
only os.stat() on the entry, which never hydrates the file.
"""

import logging
import os
import stat
import sys
from enum import Enum

logger = logging.getLogger(__name__)

# Windows file attributes (winnt.h)
FILE_ATTRIBUTE_OFFLINE = 0x00001000
FILE_ATTRIBUTE_RECALL_ON_OPEN = 0x00040000
FILE_ATTRIBUTE_PINNED = 0x00080000
FILE_ATTRIBUTE_UNPINNED = 0x00100000
FILE_ATTRIBUTE_RECALL_ON_DATA_ACCESS = 0x00400000

_WINDOWS_REMOTE_ATTRIBUTES = (
    FILE_ATTRIBUTE_OFFLINE
    | FILE_ATTRIBUTE_RECALL_ON_OPEN
    | FILE_ATTRIBUTE_RECALL_ON_DATA_ACCESS
)

# macOS/BSD: content lives only in the cloud (sys/stat.h)
SF_DATALESS = getattr(stat, "SF_DATALESS", 0x40000000)


class FileLocalityStatus(str, Enum):
    LOCAL = "local"
    ON_DEMAND = "on_demand"
    UNKNOWN = "unknown"


def status_from_stat(st: os.stat_result, platform: str = sys.platform) -> FileLocalityStatus:
    """Classify an already-fetched stat result."""
    if platform == "win32":
        attributes = getattr(st, "st_file_attributes", 0)
        if attributes & _WINDOWS_REMOTE_ATTRIBUTES:
            return FileLocalityStatus.ON_DEMAND
        return FileLocalityStatus.LOCAL

    flags = getattr(st, "st_flags", 0)
    if flags & SF_DATALESS:
        return FileLocalityStatus.ON_DEMAND
    return FileLocalityStatus.LOCAL


def get_file_locality_status(path) -> FileLocalityStatus:
    """Return the locality of *path* without touching its content."""
    try:
        st = os.stat(path)
    except OSError as e:
        logger.debug(f"Locality check failed for {path}: {e}")
        return FileLocalityStatus.UNKNOWN
    return status_from_stat(st)


def is_remote_placeholder(path) -> bool:
    """True if reading *path* could trigger a download.

    Unknown status counts as remote: when in doubt, don't touch it.
    """
    return get_file_locality_status(path) != FileLocalityStatus.LOCAL
