"""Delete every stored ailment and clear the ailment cache entries.

Usage:
    python scripts/truncate_db.py
"""

import logging
import os
from pathlib import Path

# Ensure .env is found when the script is run from any working directory.
os.chdir(Path(__file__).resolve().parent.parent)

from ailment_tracker.services.ailment_service import AilmentService

logger = logging.getLogger(__name__)


def main() -> None:
    service = AilmentService.from_settings()
    removed = service.store.truncate()
    if not removed:
        logger.info("No ailments stored, nothing to truncate.")
    else:
        logger.info("Deleted %d ailments", removed)
    service.cache.invalidate("ailment*")
    logger.info("Done.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
