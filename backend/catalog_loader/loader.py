"""
Loads the bundled airport dataset into the `airport` table.

The catalog is read-only for the app: this loader is the only writer, run
once when the table is empty (ensure_catalog) or on demand as a script:

    python -m catalog_loader.loader [path/to/airports.csv]
"""
import os
import sys
import logging
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.orm import Session

from flightsearch.config import settings
from flightsearch.database import SessionLocal, init_db
from flightsearch.models.airport import Airport

logger = logging.getLogger("CatalogLoader")

BUNDLED_CSV_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "airports.csv")
REQUIRED_COLUMNS = ["id", "iata_code", "name", "passengers"]


class CatalogLoadError(RuntimeError):
    """The airport dataset is missing or unusable."""


def read_airports_csv(csv_path: str) -> List[Dict[str, Any]]:
    try:
        df = pd.read_csv(csv_path, dtype={"iata_code": str, "name": str})
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise CatalogLoadError(f"Cannot read airport dataset {csv_path}: {e}") from e

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise CatalogLoadError(f"Airport dataset {csv_path} is missing columns: {', '.join(missing)}")

    df = df[REQUIRED_COLUMNS].dropna(subset=["id", "iata_code", "name"]).copy()
    df["iata_code"] = df["iata_code"].str.strip().str.upper()
    df["name"] = df["name"].str.strip()
    df["passengers"] = df["passengers"].fillna(0).astype(int)
    df["id"] = df["id"].astype(int)

    duplicates = df[df.duplicated(subset=["iata_code"], keep="first")]
    for code in duplicates["iata_code"]:
        logger.warning(f"Duplicate IATA code in dataset: {code}")
    df = df.drop_duplicates(subset=["iata_code"], keep="first")

    records = df.to_dict(orient="records")
    if not records:
        raise CatalogLoadError(f"Airport dataset {csv_path} has no usable rows")
    return records


def upsert_airports(db: Session, records: List[Dict[str, Any]]) -> int:
    stmt = insert(Airport).values(records)
    stmt = stmt.on_conflict_do_update(
        index_elements=["iata_code"],
        set_={
            "name": stmt.excluded.name,
            "passengers": stmt.excluded.passengers,
        }
    )
    try:
        db.execute(stmt)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Upserted {len(records)} airports")
    return len(records)


def load_airports(db: Session, csv_path: Optional[str] = None) -> int:
    csv_path = csv_path or settings.airports_csv_path or BUNDLED_CSV_PATH
    logger.info(f"Loading airport dataset from {csv_path}")
    return upsert_airports(db, read_airports_csv(csv_path))


def ensure_catalog(db: Session, csv_path: Optional[str] = None) -> int:
    """Populate the airport table from the dataset only if it is empty."""
    count = db.execute(select(func.count(Airport.id))).scalar() or 0
    if count:
        logger.info(f"Airport catalog already holds {count} airports")
        return count
    return load_airports(db, csv_path)


def main():
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    csv_path = sys.argv[1] if len(sys.argv) > 1 else None

    init_db()
    db = SessionLocal()
    try:
        load_airports(db, csv_path)
    except CatalogLoadError as e:
        logger.error(str(e))
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
