"""Centralized branding constants — single source of truth for version."""


class UpdaterBranding:
    """Library identity constants."""

    APP_NAME = "wplatest-updater"
    SERVICE_NAME = "WPLatest"
    VERSION = "1.0.0"

    # Appended to the plugin slug to build the transient name
    CACHE_SUFFIX = "wplatest"

    @classmethod
    def user_agent(cls) -> str:
        return f"{cls.APP_NAME}/{cls.VERSION}"
