"""Navigation tracking for Appium sessions and Playwright pages."""

from .navigation import NavigationTracker, parse_selector
from .uploader import ApiUploader
from .url import UrlTracker

__all__ = ["ApiUploader", "NavigationTracker", "UrlTracker", "parse_selector"]
