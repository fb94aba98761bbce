"""FealtyX bug & task tracker.

Tasks and time entries live in memory and are persisted as JSON blobs to a
flat key-value store (SQLite by default). Dashboards and reports are derived
from those two lists.
"""

__version__ = "0.1.0"
