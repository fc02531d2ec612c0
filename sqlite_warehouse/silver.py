import sqlite3
import os
from datetime import date, datetime
from typing import Optional

import pandas as pd

from sqlite_warehouse.bronze import bronze_table
from sqlite_warehouse.normalizer import SILVER_COLUMNS, normalize
from utils.logger import setup_logger

logger = setup_logger("SilverLayer")

SILVER_DDL = {
    'crm_cust_info': """
        cst_id INTEGER,
        cst_key TEXT,
        cst_firstname TEXT,
        cst_lastname TEXT,
        cst_marital_status TEXT,
        cst_gndr TEXT,
        cst_create_date DATETIME""",
    'crm_prd_info': """
        prd_id INTEGER,
        cat_id TEXT,
        prd_key TEXT,
        prd_nm TEXT,
        prd_cost REAL,
        prd_line TEXT,
        prd_start_dt DATE,
        prd_end_dt DATE""",
    'crm_sales_details': """
        sls_ord_num TEXT,
        sls_prd_key TEXT,
        sls_cust_id INTEGER,
        sls_order_dt INTEGER,
        sls_ship_dt INTEGER,
        sls_due_dt INTEGER,
        sls_sales REAL,
        sls_quantity INTEGER,
        sls_price REAL""",
    'erp_cust_az12': """
        cid TEXT,
        bdate DATE,
        gen TEXT""",
    'erp_loc_a101': """
        cid TEXT,
        cntry TEXT""",
    'erp_px_cat_g1v2': """
        id TEXT,
        cat TEXT,
        subcat TEXT,
        maintenance TEXT""",
}

DATE_FORMAT = '%Y-%m-%d'
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

# Columns that keep their time of day; every other datetime column is a date
TIMESTAMP_COLUMNS = {'cst_create_date'}


def silver_table(entity: str) -> str:
    return f"silver_{entity}"


def create_silver_tables(cursor):
    """
    Create the silver tables if they don't already exist.
    Each one carries a dwh_create_date load stamp.
    """
    for entity, columns in SILVER_DDL.items():
        cursor.execute(f"""
            CREATE TABLE IF NOT EXISTS {silver_table(entity)} ({columns},
                dwh_create_date TEXT
            )
        """)


def format_dates(df: pd.DataFrame) -> pd.DataFrame:
    """Render datetime columns as ISO text: timestamps with time of day, dates without."""
    formatted = df.copy()
    for column in formatted.columns:
        if pd.api.types.is_datetime64_any_dtype(formatted[column]):
            fmt = TIMESTAMP_FORMAT if column in TIMESTAMP_COLUMNS else DATE_FORMAT
            formatted[column] = formatted[column].dt.strftime(fmt)
    return formatted


def replace_table(conn: sqlite3.Connection, table: str, df: pd.DataFrame) -> int:
    """
    Truncate a table and insert the given rows in one transaction.

    Returns:
        Number of rows written
    """
    cursor = conn.cursor()
    try:
        cursor.execute(f"DELETE FROM {table}")
        df.to_sql(table, conn, if_exists='append', index=False)
        # to_sql writes nothing for an empty frame, so the DELETE needs its own commit
        conn.commit()
    except (sqlite3.Error, pd.errors.DatabaseError):
        conn.rollback()
        raise
    return len(df)


def transform_entity(conn: sqlite3.Connection, entity: str, today: Optional[date] = None) -> int:
    """
    Normalize one bronze table and replace its silver counterpart.

    Args:
        conn: Open warehouse connection
        entity: Source table name, e.g. 'crm_prd_info'
        today: Reference day for future-date checks

    Returns:
        Number of rows written to silver
    """
    bronze_df = pd.read_sql(f"SELECT * FROM {bronze_table(entity)}", conn)
    logger.info(f"Read {len(bronze_df)} records from {bronze_table(entity)}")

    silver_df = normalize(entity, bronze_df, today=today)[SILVER_COLUMNS[entity]]
    silver_df = silver_df.assign(dwh_create_date=datetime.now().strftime(TIMESTAMP_FORMAT))

    dropped = len(bronze_df) - len(silver_df)
    if dropped:
        logger.info(f"{dropped} {entity} records removed as duplicates or missing keys")

    written = replace_table(conn, silver_table(entity), format_dates(silver_df))
    logger.info(f"Replaced {silver_table(entity)} with {written} records")
    return written


def transform_bronze_to_silver(db_file: str, today: Optional[date] = None) -> bool:
    """
    Rebuild every silver table from the bronze layer stored in db_file.

    Returns:
        True if all six tables were replaced, False otherwise
    """
    if not os.path.exists(db_file):
        logger.error(f"Database not found: {db_file}")
        return False

    conn = None
    try:
        conn = sqlite3.connect(db_file)
        create_silver_tables(conn.cursor())
        conn.commit()

        total = 0
        for entity in SILVER_DDL:
            total += transform_entity(conn, entity, today=today)

        logger.info(f"Silver layer loaded: {total} records across {len(SILVER_DDL)} tables")
        return True

    except Exception as e:
        logger.error(f"Error during silver layer transformation: {e}")
        return False

    finally:
        if conn:
            conn.close()


if __name__ == "__main__":
    from sqlite_warehouse.config import PipelineConfig

    config = PipelineConfig()
    if transform_bronze_to_silver(config.db_path):
        logger.info("Silver layer transformation completed successfully.")
    else:
        logger.error("Silver layer transformation failed.")
