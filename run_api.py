"""
Start the date poll API with uvicorn.

Settings (host, port, database, admin password) come from the environment
or .env; see datepoll/config.py.
"""

import logging
import sys

from datepoll.main import run


def main() -> None:
    try:
        run()
    except Exception:
        logging.basicConfig(level=logging.ERROR)
        logging.exception("Date poll API failed to start.")
        print("\nDate poll API failed to start. Check DATABASE_URL / DB_PATH, PORT and POLL_TIMEZONE.\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
