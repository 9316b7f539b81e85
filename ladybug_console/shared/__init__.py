"""Shared configuration, logging and exceptions."""

from ladybug_console.shared.config import DEFAULT_ENDPOINT, LadybugSettings
from ladybug_console.shared.exceptions import LadybugError

__all__ = [
    "DEFAULT_ENDPOINT",
    "LadybugSettings",
    "LadybugError",
]
