"""Updater error taxonomy.

Only ConfigurationError ever reaches the caller. FetchError and
VersionMissing are raised inside the resolver and converted to
"no update" before control returns to the host.
"""


class UpdaterError(Exception):
    """Base class for all updater errors."""


class ConfigurationError(UpdaterError):
    """Required configuration fields are missing or blank."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            "Missing required configuration: " + ", ".join(self.missing)
        )


class FetchError(UpdaterError):
    """The update API could not be reached or returned an unusable body."""

    def __init__(self, message: str, status: int | None = None,
                 url: str | None = None):
        self.status = status
        self.url = url
        super().__init__(message)


class VersionMissing(UpdaterError):
    """The remote descriptor lacks its name, slug or version."""
