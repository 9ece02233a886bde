"""Platform services package."""

from course_import.infrastructure.platform.factory import create_platform_factory
from course_import.infrastructure.platform.formats import StaticFormatRegistry
from course_import.infrastructure.platform.policies import (
    PlatformDateRule,
    SettingsPermissionContext,
    StaticEnrolmentPluginRegistry,
)

__all__ = [
    "PlatformDateRule",
    "SettingsPermissionContext",
    "StaticEnrolmentPluginRegistry",
    "StaticFormatRegistry",
    "create_platform_factory",
]
