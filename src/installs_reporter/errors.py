"""Exception taxonomy for installs_reporter.

Bad *data* never escapes ``compute_view``: malformed devices are logged and
skipped, missing datasets render as empty views. Only bad *user actions*
(``ReportValidationError``, ``ReportStateError``) and collaborator failures
(``UpstreamFetchError``, ``SettingsError``) are raised to callers.
"""


class InstallsReporterError(Exception):
    """Base class for all installs_reporter errors."""


class MalformedInputError(InstallsReporterError):
    """A raw device payload could not be normalized at all."""


class ReportValidationError(InstallsReporterError):
    """A report action was rejected; existing state is left untouched."""


class ReportStateError(InstallsReporterError):
    """A report-mode transition is not permitted from the current state."""


class UpstreamFetchError(InstallsReporterError):
    """The device/install data source could not be read."""


class SettingsError(InstallsReporterError):
    """An explicitly requested settings file is missing or invalid."""
