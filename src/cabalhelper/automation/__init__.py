"""Automation building blocks shared by the tools."""
from .context import AutomationContext, AutomationServices
from .detection import any_near, filter_red_dots, is_position_near

__all__ = [
    "AutomationContext",
    "AutomationServices",
    "any_near",
    "filter_red_dots",
    "is_position_near",
]
