"""Settings store abstraction — pluggable source of the delivery settings document."""

import os

_store_instance = None


def get_settings_store():
    """Return the configured settings store (singleton).

    Uses StaticSettingsStore by default. Configure via the SETTINGS_ADAPTER
    environment variable (``static`` or ``file``); the file adapter reads
    the path in SETTINGS_FILE.
    """
    global _store_instance
    if _store_instance is None:
        adapter = os.environ.get("SETTINGS_ADAPTER", "static")
        if adapter == "static":
            from ordering.delivery.settings_store.static_adapter import StaticSettingsStore

            _store_instance = StaticSettingsStore()
        elif adapter == "file":
            from ordering.delivery.settings_store.file_adapter import JsonFileSettingsStore

            _store_instance = JsonFileSettingsStore(os.environ.get("SETTINGS_FILE", "delivery_settings.json"))
        else:
            raise ValueError(f"Unknown settings adapter: {adapter}")
    return _store_instance


def reset_settings_store():
    """Reset the settings store singleton (useful for testing)."""
    global _store_instance
    _store_instance = None
