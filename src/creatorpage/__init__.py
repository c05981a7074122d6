"""
creatorpage -- content sync engine for a creator's landing page.

Profile, stats, schedule, leaderboards and gallery stay in step
between a realtime remote store and a local fallback cache.
"""

import os

__version__ = "0.1.0"
__author__ = "creatorpage"

PAGE_HOME = os.environ.get("CREATORPAGE_HOME", "~/.creatorpage")
