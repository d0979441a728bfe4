"""Framework adapters translating native handles into the capture interface."""

from .appium import AppiumAdapter
from .base import RuntimeAdapter
from .cypress import CypressAdapter
from .playwright import PlaywrightAdapter
from .puppeteer import PuppeteerAdapter

__all__ = [
    "AppiumAdapter",
    "CypressAdapter",
    "PlaywrightAdapter",
    "PuppeteerAdapter",
    "RuntimeAdapter",
]
