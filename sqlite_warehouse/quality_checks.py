"""
Data Quality Checks

Read-only diagnostics over the bronze and silver tables. Run against bronze
they expose the raw data problems the silver rules exist for: duplicate
business keys, malformed integer dates, unmapped codes, hidden CR/LF
characters, inconsistent sales amounts. Run against silver, every issue
check is expected to come back empty.

Two kinds of check:
    issue   - every returned row is a problem
    profile - a value distribution to eyeball, never a failure
"""
import sqlite3
from typing import Dict, List, NamedTuple, Tuple

import pandas as pd

from utils.logger import setup_logger

logger = setup_logger("QualityChecks")

ISSUE = "issue"
PROFILE = "profile"
LAYERS = ("bronze", "silver")


class Check(NamedTuple):
    name: str
    kind: str
    layers: Tuple[str, ...]
    sql: str


# Integer dates arrive as text in bronze, so every comparison casts first
_BAD_INT_DATE = (
    "({column} IS NOT NULL AND (CAST({column} AS INTEGER) <= 0 "
    "OR LENGTH(CAST(CAST({column} AS INTEGER) AS TEXT)) != 8))"
)


def _strip_crlf(column: str) -> str:
    return f"TRIM(REPLACE(REPLACE({column}, char(13), ''), char(10), ''))"


CHECKS: List[Check] = [
    # CRM customers
    Check("duplicate_customer_keys", ISSUE, LAYERS, """
        SELECT cst_id, COUNT(*) AS cnt_rows
        FROM {layer}_crm_cust_info
        GROUP BY cst_id
        HAVING COUNT(*) > 1 OR cst_id IS NULL
        ORDER BY cnt_rows DESC, cst_id
    """),
    Check("superseded_customer_rows", PROFILE, ("bronze",), """
        SELECT *
        FROM (
            SELECT *,
                   ROW_NUMBER() OVER (
                       PARTITION BY cst_id
                       ORDER BY cst_create_date DESC
                   ) AS flag_last
            FROM {layer}_crm_cust_info
            WHERE cst_id IS NOT NULL
        ) t
        WHERE flag_last > 1
        ORDER BY cst_id, cst_create_date DESC
    """),
    Check("untrimmed_customer_names", ISSUE, LAYERS, """
        SELECT cst_id, cst_firstname, cst_lastname
        FROM {layer}_crm_cust_info
        WHERE cst_firstname != TRIM(cst_firstname)
           OR cst_lastname != TRIM(cst_lastname)
    """),
    Check("marital_status_values", PROFILE, LAYERS, """
        SELECT TRIM(cst_marital_status) AS value, COUNT(*) AS cnt_rows
        FROM {layer}_crm_cust_info
        GROUP BY TRIM(cst_marital_status)
        ORDER BY cnt_rows DESC
    """),
    Check("gender_values", PROFILE, LAYERS, """
        SELECT TRIM(cst_gndr) AS value, UPPER(TRIM(cst_gndr)) AS upper_value, COUNT(*) AS cnt_rows
        FROM {layer}_crm_cust_info
        GROUP BY TRIM(cst_gndr), UPPER(TRIM(cst_gndr))
        ORDER BY cnt_rows DESC
    """),
    # CRM products
    Check("product_line_values", PROFILE, LAYERS, """
        SELECT TRIM(prd_line) AS value, UPPER(TRIM(prd_line)) AS upper_value, COUNT(*) AS cnt_rows
        FROM {layer}_crm_prd_info
        GROUP BY TRIM(prd_line), UPPER(TRIM(prd_line))
        ORDER BY cnt_rows DESC
    """),
    Check("category_key_preview", PROFILE, ("bronze",), """
        SELECT prd_id,
               prd_key,
               REPLACE(SUBSTR(prd_key, 1, 5), '-', '_') AS derived_cat_id,
               SUBSTR(prd_key, 7) AS derived_prd_key
        FROM {layer}_crm_prd_info
        LIMIT 50
    """),
    Check("negative_product_costs", ISSUE, LAYERS, """
        SELECT prd_id, prd_key, prd_cost
        FROM {layer}_crm_prd_info
        WHERE prd_cost IS NULL OR CAST(prd_cost AS REAL) < 0
    """),
    Check("inverted_product_ranges", ISSUE, LAYERS, """
        SELECT prd_id, prd_key, prd_start_dt, prd_end_dt
        FROM {layer}_crm_prd_info
        WHERE prd_end_dt < prd_start_dt
        ORDER BY prd_key, prd_start_dt
    """),
    # CRM sales
    Check("invalid_order_dates", ISSUE, LAYERS, """
        SELECT sls_ord_num, sls_order_dt
        FROM {layer}_crm_sales_details
        WHERE """ + _BAD_INT_DATE.format(column="sls_order_dt") + """
        ORDER BY sls_ord_num
    """),
    Check("invalid_ship_dates", ISSUE, LAYERS, """
        SELECT sls_ord_num, sls_order_dt, sls_ship_dt
        FROM {layer}_crm_sales_details
        WHERE """ + _BAD_INT_DATE.format(column="sls_ship_dt") + """
           OR CAST(sls_ship_dt AS INTEGER) < CAST(sls_order_dt AS INTEGER)
        ORDER BY sls_ord_num
    """),
    Check("invalid_due_dates", ISSUE, LAYERS, """
        SELECT sls_ord_num, sls_order_dt, sls_due_dt
        FROM {layer}_crm_sales_details
        WHERE """ + _BAD_INT_DATE.format(column="sls_due_dt") + """
           OR CAST(sls_due_dt AS INTEGER) < CAST(sls_order_dt AS INTEGER)
        ORDER BY sls_ord_num
    """),
    # Bronze only: silver leaves sales null when the price is unknown
    Check("inconsistent_sales", ISSUE, ("bronze",), """
        SELECT sls_ord_num,
               sls_quantity,
               sls_price,
               sls_sales,
               CAST(sls_quantity AS REAL) * ABS(CAST(sls_price AS REAL)) AS expected_sales
        FROM {layer}_crm_sales_details
        WHERE sls_sales IS NULL
           OR CAST(sls_sales AS REAL) <= 0
           OR CAST(sls_sales AS REAL) != CAST(sls_quantity AS REAL) * ABS(CAST(sls_price AS REAL))
        ORDER BY sls_ord_num
    """),
    # IS NOT is null-safe: null sales passes only when quantity or price is null
    Check("sales_formula_violations", ISSUE, LAYERS, """
        SELECT sls_ord_num,
               sls_quantity,
               sls_price,
               sls_sales
        FROM {layer}_crm_sales_details
        WHERE CAST(sls_sales AS REAL)
              IS NOT CAST(sls_quantity AS REAL) * ABS(CAST(sls_price AS REAL))
        ORDER BY sls_ord_num
    """),
    # ERP customers
    Check("erp_gender_values", PROFILE, LAYERS, """
        SELECT gen AS raw_gen,
               '[' || gen || ']' AS gen_in_brackets,
               UPPER(TRIM(gen)) AS upper_trim_gen,
               LENGTH(gen) AS len_gen,
               COUNT(*) AS cnt_rows
        FROM {layer}_erp_cust_az12
        WHERE gen IS NOT NULL
        GROUP BY gen
        ORDER BY len_gen DESC
    """),
    Check("future_birthdates", ISSUE, LAYERS, """
        SELECT cid, bdate
        FROM {layer}_erp_cust_az12
        WHERE DATE(bdate) > DATE('now')
        ORDER BY bdate
    """),
    Check("nas_prefixed_ids", ISSUE, LAYERS, """
        SELECT cid,
               CASE WHEN SUBSTR(cid, 1, 3) = 'NAS' THEN SUBSTR(cid, 4) ELSE cid END AS cleaned_cid
        FROM {layer}_erp_cust_az12
        WHERE SUBSTR(cid, 1, 3) = 'NAS'
        ORDER BY cid
    """),
    # ERP locations
    Check("country_values", PROFILE, LAYERS, """
        SELECT cntry AS raw_cntry,
               '[' || cntry || ']' AS cntry_in_brackets,
               UPPER(""" + _strip_crlf("cntry") + """) AS upper_trim_cntry,
               LENGTH(cntry) AS len_cntry,
               COUNT(*) AS cnt_rows
        FROM {layer}_erp_loc_a101
        GROUP BY cntry
        ORDER BY raw_cntry
    """),
    Check("unnormalized_countries", ISSUE, LAYERS, """
        SELECT cid, cntry
        FROM {layer}_erp_loc_a101
        WHERE cntry IS NULL
           OR cntry != """ + _strip_crlf("cntry") + """
           OR """ + _strip_crlf("cntry") + """ = ''
           OR UPPER(cntry) IN ('US', 'USA', 'DE')
    """),
    Check("punctuated_location_ids", ISSUE, LAYERS, """
        SELECT cid, cntry
        FROM {layer}_erp_loc_a101
        WHERE INSTR(cid, '-') > 0
    """),
    # ERP categories
    Check("hidden_maintenance_characters", ISSUE, LAYERS, """
        SELECT id, cat, subcat,
               maintenance AS raw_maintenance,
               '[' || maintenance || ']' AS maintenance_in_brackets,
               """ + _strip_crlf("maintenance") + """ AS cleaned_maintenance,
               LENGTH(maintenance) AS len_maintenance
        FROM {layer}_erp_px_cat_g1v2
        WHERE maintenance != """ + _strip_crlf("maintenance") + """
        ORDER BY len_maintenance DESC
    """),
]


def checks_for(layer: str) -> List[Check]:
    if layer not in LAYERS:
        raise ValueError(f"Invalid layer: {layer}")
    return [check for check in CHECKS if layer in check.layers]


def run_check(conn: sqlite3.Connection, check: Check, layer: str) -> pd.DataFrame:
    return pd.read_sql(check.sql.format(layer=layer), conn)


def run_checks(db_file: str, layer: str = "bronze") -> Dict[str, pd.DataFrame]:
    """
    Run every check that applies to a layer.

    Args:
        db_file: Path to the SQLite warehouse database
        layer: 'bronze' or 'silver'

    Returns:
        Check name -> result rows
    """
    results = {}
    conn = sqlite3.connect(db_file)
    try:
        for check in checks_for(layer):
            df = run_check(conn, check, layer)
            results[check.name] = df
            if check.kind == ISSUE and not df.empty:
                logger.warning(f"[{layer}] {check.name}: {len(df)} rows")
            else:
                logger.info(f"[{layer}] {check.name}: {len(df)} rows")
    finally:
        conn.close()
    return results


def summarize(results: Dict[str, pd.DataFrame]) -> Dict[str, int]:
    """Row counts of the issue checks in a run_checks result."""
    kinds = {check.name: check.kind for check in CHECKS}
    return {
        name: len(df)
        for name, df in results.items()
        if kinds.get(name) == ISSUE
    }
