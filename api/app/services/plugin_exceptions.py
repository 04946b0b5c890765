"""
Plugin import errors.

Hierarchy:
    PluginImportError (base)
    +-- InvalidUploadError: upload is not a usable .zip
    +-- ExtractionError
    |   +-- ArchiveOpenError: archive cannot be opened or is empty
    |   +-- ArchiveWriteError: archive members cannot be written to disk
    +-- NotFoundError
    |   +-- MainFileNotFoundError: no top-level file carries the Plugin Name marker
    +-- StatementExecutionError: one schema statement failed (recorded, not raised)

Everything except StatementExecutionError aborts the import; routes turn the
message into a 400 response.
"""


class PluginImportError(Exception):
    """Base class; str(e) is the user-facing message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidUploadError(PluginImportError):
    pass


class ExtractionError(PluginImportError):
    pass


class ArchiveOpenError(ExtractionError):
    pass


class ArchiveWriteError(ExtractionError):
    pass


class NotFoundError(PluginImportError):
    pass


class MainFileNotFoundError(NotFoundError):
    def __init__(self, plugin_path: str) -> None:
        self.plugin_path = plugin_path
        super().__init__("Could not find main plugin file")


class StatementExecutionError(PluginImportError):
    def __init__(self, statement: str, cause: Exception) -> None:
        self.statement = statement
        self.cause = cause
        super().__init__(f"Schema error: {cause}")
