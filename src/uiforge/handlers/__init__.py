"""Request handlers."""

from .ui import UIHandler

__all__ = ["UIHandler"]
