from portal.config.settings import settings
from portal.config.feature_flags import feature_flags, FeatureFlags

__all__ = ["settings", "feature_flags", "FeatureFlags"]
