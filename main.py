"""
SafeReach — Entry Point.

Single entry point: `python main.py` runs the daily reminder batch once.
Schedule it with cron, e.g. `0 1 * * * cd /srv/safereach && python main.py`.
Logging is configured by the batch itself from LOG_LEVEL.
"""

import sys

from safereach.core.batch import main

if __name__ == "__main__":
    sys.exit(main())
