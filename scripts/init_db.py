from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.geoattend.geoattend.common.logging import configure_logging, get_logger
from src.geoattend.geoattend.database.bootstrap import apply_schema, list_tables
from src.geoattend.geoattend.database.connection import DBConfig

logger = get_logger("geoattend.scripts.init_db")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    schema_path = REPO_ROOT / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)
    tables = list_tables(db_config)
    logger.info("Schema ready on %s (tables=%d)", DBConfig.from_mapping(db_config).dsn(), len(tables))


if __name__ == "__main__":
    main()
