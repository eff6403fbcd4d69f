"""Insert the demo directory (admin, kajur, two dosen, one department).

Safe to run more than once.
"""

from __future__ import annotations

import importlib

from dotenv import load_dotenv

from presensi.config import get_settings_module
from presensi.database.bootstrap import ensure_demo_directory


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ensure_demo_directory(db_config)

    print(
        "OK: Seeded demo directory -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
