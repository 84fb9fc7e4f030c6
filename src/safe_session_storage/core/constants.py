"""Core constants for safe-session-storage.

This module defines constants used throughout the package:
- On-disk layout of temporary write artifacts
- Directory listing thresholds
- Windows extended-length path markers
"""

# ============================================================================
# Write Protocol
# ============================================================================

#: Name of the sibling folder holding temporary and history write artifacts
TEMP_DIRNAME: str = "Temp"

# ============================================================================
# Directory Listing
# ============================================================================

#: Minimum size (bytes) of a file listed through an extension filter (1 MiB)
MIN_LISTED_FILE_SIZE: int = 1024 * 1024

# ============================================================================
# Long Paths (Windows)
# ============================================================================

#: Paths of this length or longer are rewritten to the extended form.
#: MAX_PATH is 260, but directory creation fails beyond 248 (MAX_PATH - 12).
LONG_PATH_THRESHOLD: int = 248

#: Prefix lifting the MAX_PATH restriction for drive-absolute paths
EXTENDED_PATH_PREFIX: str = "\\\\?\\"

#: Prefix lifting the MAX_PATH restriction for UNC paths
EXTENDED_UNC_PREFIX: str = "\\\\?\\UNC\\"
