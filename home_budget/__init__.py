"""
Home Budget Sync - Source Package

The data-synchronization core of a family budget tracker: a typed REST
gateway, paginated list state with inline editing, and the dashboard
summaries built on top of them.

DESIGN PRINCIPLES:
1. The server's record is the truth; local predictions are flagged as pending
2. Every data operation returns a Result - callers decide what to surface
3. No hidden globals - the selected budget year is passed explicitly
4. Every mutation is logged and visible in the activity feed
5. The backend is swappable (HTTP or in-memory)
"""

__version__ = "1.0.0"
__author__ = "Home Budget Team"
