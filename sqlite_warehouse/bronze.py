import sqlite3
import csv
import os
import time
from typing import Dict, List, NamedTuple

import pandas as pd

from utils.logger import setup_logger

logger = setup_logger("BronzeLayer")


class Source(NamedTuple):
    system: str
    file_name: str
    columns: List[str]


# Columns are picked from each extract by header name and stored in the order listed
SOURCES: Dict[str, Source] = {
    'crm_cust_info': Source('source_crm', 'cust_info.csv', [
        'cst_id', 'cst_key', 'cst_firstname', 'cst_lastname',
        'cst_marital_status', 'cst_gndr', 'cst_create_date'
    ]),
    'crm_prd_info': Source('source_crm', 'prd_info.csv', [
        'prd_id', 'prd_key', 'prd_nm', 'prd_cost', 'prd_line', 'prd_start_dt', 'prd_end_dt'
    ]),
    'crm_sales_details': Source('source_crm', 'sales_details.csv', [
        'sls_ord_num', 'sls_prd_key', 'sls_cust_id', 'sls_order_dt', 'sls_ship_dt',
        'sls_due_dt', 'sls_sales', 'sls_quantity', 'sls_price'
    ]),
    'erp_cust_az12': Source('source_erp', 'CUST_AZ12.csv', ['cid', 'bdate', 'gen']),
    'erp_loc_a101': Source('source_erp', 'LOC_A101.csv', ['cid', 'cntry']),
    'erp_px_cat_g1v2': Source('source_erp', 'PX_CAT_G1V2.csv', ['id', 'cat', 'subcat', 'maintenance']),
}


def bronze_table(entity: str) -> str:
    return f"bronze_{entity}"


def source_path(source_dir: str, entity: str) -> str:
    source = SOURCES[entity]
    return os.path.join(source_dir, source.system, source.file_name)


def create_bronze_table(cursor, entity: str):
    """
    Create the bronze table for an entity if it doesn't already exist.
    Every column is raw text, exactly as delivered.
    """
    columns = ",\n            ".join(f"{column} TEXT" for column in SOURCES[entity].columns)
    cursor.execute(f"""
        CREATE TABLE IF NOT EXISTS {bronze_table(entity)} (
            {columns}
        )
    """)


def validate_csv_structure(csv_file: str, required_columns: list) -> bool:
    """
    Check that an extract's header names every column the bronze table needs.

    Header names are compared after trimming. Extra columns are allowed and
    only reported, since load_entity picks the required ones by name.
    """
    try:
        with open(csv_file, newline='', encoding='utf-8') as f:
            header = next(csv.reader(f), None)
    except OSError as e:
        logger.error(f"Cannot read header of {csv_file}: {e}")
        return False

    if not header:
        logger.error(f"{csv_file} has no header row")
        return False

    found = {column.strip() for column in header}
    missing = [column for column in required_columns if column not in found]
    if missing:
        logger.error(f"{csv_file} is missing columns {missing}")
        return False

    extra = sorted(found - set(required_columns))
    if extra:
        logger.warning(f"{csv_file} has unused columns {extra}; they will not be loaded")
    return True


def read_source_csv(csv_file: str) -> pd.DataFrame:
    """
    Read a source extract without interpreting it.

    Values stay text with their whitespace; only empty fields become null.
    """
    df = pd.read_csv(
        csv_file,
        dtype=str,
        keep_default_na=False,
        na_values=[''],
        encoding='utf-8'
    )
    df.columns = [column.strip() for column in df.columns]
    return df


def load_entity(conn: sqlite3.Connection, entity: str, csv_file: str) -> int:
    """
    Replace the bronze table of one entity with the contents of its CSV file.

    Args:
        conn: Open warehouse connection
        entity: Source table name, e.g. 'crm_cust_info'
        csv_file: Path to the extract

    Returns:
        Number of rows loaded
    """
    columns = SOURCES[entity].columns
    df = read_source_csv(csv_file)[columns]
    table = bronze_table(entity)

    cursor = conn.cursor()
    create_bronze_table(cursor, entity)
    try:
        # Truncate and insert commit together
        cursor.execute(f"DELETE FROM {table}")
        placeholders = ", ".join("?" for _ in columns)
        rows = [
            tuple(None if pd.isna(value) else value for value in row)
            for row in df.itertuples(index=False, name=None)
        ]
        cursor.executemany(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            rows
        )
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise

    logger.info(f"Loaded {len(rows)} rows into {table} from {csv_file}")
    return len(rows)


def ingest_all(source_dir: str, db_file: str) -> bool:
    """
    Full reload of every bronze table from the source directory.

    Args:
        source_dir: Folder holding source_crm/ and source_erp/
        db_file: Path to the SQLite database file

    Returns:
        True if ingestion is successful, False otherwise
    """
    for entity, source in SOURCES.items():
        csv_file = source_path(source_dir, entity)
        if not os.path.exists(csv_file):
            logger.error(f"CSV file not found: {csv_file}")
            return False
        if not validate_csv_structure(csv_file, source.columns):
            logger.error(f"CSV structure validation failed for {entity}. Aborting ingestion.")
            return False

    conn = None
    try:
        db_dir = os.path.dirname(db_file)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        conn = sqlite3.connect(db_file)

        batch_start = time.perf_counter()
        total = 0
        for entity in SOURCES:
            started = time.perf_counter()
            total += load_entity(conn, entity, source_path(source_dir, entity))
            logger.info(f"{bronze_table(entity)} loaded in {time.perf_counter() - started:.2f}s")

        logger.info(
            f"Bronze layer loaded: {total} rows across {len(SOURCES)} tables "
            f"in {time.perf_counter() - batch_start:.2f}s"
        )
        return True

    except Exception as e:
        logger.error(f"Error during bronze ingestion: {e}")
        return False

    finally:
        if conn:
            conn.close()


if __name__ == "__main__":
    from sqlite_warehouse.config import PipelineConfig

    config = PipelineConfig()
    logger.info(f"Ingesting data from: {config.source_dir}")
    logger.info(f"Saving database to: {config.db_path}")

    if ingest_all(config.source_dir, config.db_path):
        logger.info("Bronze layer ingestion completed successfully.")
    else:
        logger.error("Bronze layer ingestion failed.")
