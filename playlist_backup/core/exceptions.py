"""
Exception classes for playlist-backup.

Every failure mode of the backup pipeline has its own exception so callers
can tell a broken settings file apart from a single unwritable playlist.

Exception Hierarchy:
    PlaylistBackupError (base)
        ConfigError - Settings file issues
        SourceError - Host playlist query issues
        ExportError - Directory or file write issues for one playlist
        RootMismatchError - Relative root does not contain the playlist's tracks
        BatchApplyConflictError - Enabled playlists disagree on a value

Only ConfigError (on save) and the two editor errors ever reach the user.
Inside a backup run everything is caught per playlist and logged.
"""


class PlaylistBackupError(Exception):
    """
    Base exception for all playlist-backup errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (playlist name, paths).

    Example:
        try:
            store.save()
        except PlaylistBackupError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'playlist': Playlist name involved in the error
                     - 'path': Filesystem path that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(PlaylistBackupError):
    """
    Raised when the settings file cannot be written or is unusable.

    While loading, this error is caught by the settings store and replaced
    with default settings. It only reaches the user when saving fails.

    Common causes:
        - Settings directory not writable
        - Disk full
        - Invalid YAML syntax (load only, recovered)

    Example:
        raise ConfigError(
            "Failed to save settings",
            details={'file_path': '/path/to/playlist_backup.yaml'}
        )
    """
    pass


class SourceError(PlaylistBackupError):
    """
    Raised when the host library cannot answer a playlist query.

    NON-CRITICAL inside a run: the orchestrator logs it and the affected
    playlists produce no file.

    Example:
        raise SourceError(
            "Playlist file could not be read",
            details={'identifier': 'Favorites/Top.m3u8'}
        )
    """
    pass


class ExportError(PlaylistBackupError):
    """
    Raised when a single playlist export cannot be written.

    NON-CRITICAL: sibling playlists of the same run still export.

    Common causes:
        - Export directory cannot be created (invalid path, permissions)
        - Target file locked or not writable
        - Disk full

    Example:
        raise ExportError(
            "Cannot create export directory",
            details={'playlist': 'Favorites\\\\Top', 'path': 'Q:\\\\Backup'}
        )
    """
    pass


class RootMismatchError(PlaylistBackupError):
    """
    Raised by the settings validator under the 'block' policy.

    Attributes:
        mismatches: The RootMismatch entries that caused the save to be blocked.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        mismatches: list | None = None
    ) -> None:
        """
        Initialize with the offending playlists.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            mismatches: List of RootMismatch entries found by the validator.
        """
        super().__init__(message, details)
        self.mismatches = mismatches or []


class BatchApplyConflictError(PlaylistBackupError):
    """
    Raised when a batch apply finds more than one distinct value.

    Batch apply copies the single value set on one enabled playlist to all
    enabled playlists. If two enabled playlists already carry different
    values there is no way to choose, so nothing is changed.

    Example:
        raise BatchApplyConflictError(
            "Enabled playlists have different values",
            details={'field': 'custom_root_path', 'values': ['D:\\\\A', 'D:\\\\B']}
        )
    """
    pass
