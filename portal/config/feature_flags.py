"""
Feature Flags Configuration

Centralized feature flag management for the portal.
All feature flags are loaded from environment variables.
"""
import os


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


class FeatureFlags:
    """
    Feature flags for the application.

    To add a new feature flag:
    1. Add it here as a class property
    2. Load it from environment variable
    3. Use it in your code
    """

    # Registration: reject self-service registration outside the semester window
    ENFORCE_REGISTRATION_WINDOW: bool = get_bool_env('ENFORCE_REGISTRATION_WINDOW', False)

    # AI assistants (Gemini-backed endpoints under /api/ai)
    FEATURE_AI_ASSISTANTS: bool = get_bool_env('FEATURE_AI_ASSISTANTS', True)

    # Audit trail for mutating requests
    FEATURE_AUDIT_LOG: bool = get_bool_env('FEATURE_AUDIT_LOG', True)

    @classmethod
    def as_dict(cls) -> dict:
        return {
            name: getattr(cls, name)
            for name in dir(cls)
            if name.isupper()
        }


feature_flags = FeatureFlags()
