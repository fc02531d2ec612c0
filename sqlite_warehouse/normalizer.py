"""
Silver-layer record normalizer.

One function per source entity turns a DataFrame of raw bronze rows into
cleaned rows with the silver column set. Field-level problems never raise:
bad values are nulled or defaulted to "n/a". The only rows removed are
customer rows without a business key and superseded customer versions.
"""
from datetime import date
from typing import Callable, Dict, Optional

import pandas as pd

from sqlite_warehouse.rules import (
    GENDER,
    MARITAL_STATUS,
    PRODUCT_LINE,
    clean_text,
    map_code,
    normalize_country,
    strip_prefix,
    strip_punctuation,
    to_int,
    to_number,
    to_timestamp,
    validate_int_dates,
)

SILVER_COLUMNS = {
    'crm_cust_info': [
        'cst_id', 'cst_key', 'cst_firstname', 'cst_lastname',
        'cst_marital_status', 'cst_gndr', 'cst_create_date'
    ],
    'crm_prd_info': [
        'prd_id', 'cat_id', 'prd_key', 'prd_nm', 'prd_cost',
        'prd_line', 'prd_start_dt', 'prd_end_dt'
    ],
    'crm_sales_details': [
        'sls_ord_num', 'sls_prd_key', 'sls_cust_id', 'sls_order_dt', 'sls_ship_dt',
        'sls_due_dt', 'sls_sales', 'sls_quantity', 'sls_price'
    ],
    'erp_cust_az12': ['cid', 'bdate', 'gen'],
    'erp_loc_a101': ['cid', 'cntry'],
    'erp_px_cat_g1v2': ['id', 'cat', 'subcat', 'maintenance'],
}


def latest_per_key(df: pd.DataFrame, key: str, order_by: str) -> pd.DataFrame:
    """
    Keep one row per key: the one with the greatest order_by value.

    Rows with a null key are discarded. Ties go to the first row seen, and
    a missing order_by value ranks below any present one. Surviving rows
    keep their input order.
    """
    keyed = df[df[key].notna()]
    if keyed.empty:
        return keyed.reset_index(drop=True)

    rank = keyed[order_by].fillna(pd.Timestamp.min)
    winners = rank.groupby(keyed[key]).idxmax()
    return keyed.loc[winners.sort_values()].reset_index(drop=True)


def derive_end_dates(df: pd.DataFrame, key: str, start: str) -> pd.Series:
    """End of each version = start of the next version for the same key, minus a day."""
    ordered = df.sort_values([key, start], kind='stable', na_position='last')
    next_start = ordered.groupby(key, dropna=False, sort=False)[start].shift(-1)
    return (next_start - pd.Timedelta(days=1)).reindex(df.index)


def normalize_customers(df: pd.DataFrame) -> pd.DataFrame:
    df = df.reset_index(drop=True)
    cleaned = pd.DataFrame({
        'cst_id': to_int(df['cst_id']),
        'cst_key': clean_text(df['cst_key']),
        'cst_firstname': clean_text(df['cst_firstname']),
        'cst_lastname': clean_text(df['cst_lastname']),
        'cst_marital_status': map_code(df['cst_marital_status'], MARITAL_STATUS),
        'cst_gndr': map_code(df['cst_gndr'], GENDER),
        'cst_create_date': to_timestamp(df['cst_create_date']),
    })
    return latest_per_key(cleaned, 'cst_id', 'cst_create_date')


def normalize_products(df: pd.DataFrame) -> pd.DataFrame:
    """
    Split the compound product key, map the product line and rebuild the
    validity range of every product version.

    A frame that already carries cat_id has been split before, so its
    prd_key is taken as is.
    """
    df = df.reset_index(drop=True)
    compound = clean_text(df['prd_key'])
    if 'cat_id' in df.columns:
        cat_id = clean_text(df['cat_id'])
        prd_key = compound
    else:
        cat_id = compound.str.slice(0, 5).str.replace('-', '_', regex=False)
        prd_key = compound.str.slice(6)

    cleaned = pd.DataFrame({
        'prd_id': to_int(df['prd_id']),
        'cat_id': cat_id,
        'prd_key': prd_key,
        'prd_nm': clean_text(df['prd_nm']),
        'prd_cost': to_number(df['prd_cost']).fillna(0.0),
        'prd_line': map_code(df['prd_line'], PRODUCT_LINE),
        'prd_start_dt': to_timestamp(df['prd_start_dt']).dt.normalize(),
    })
    cleaned['prd_end_dt'] = derive_end_dates(cleaned, 'prd_key', 'prd_start_dt')
    return cleaned


def normalize_sales(df: pd.DataFrame) -> pd.DataFrame:
    """
    Validate integer-encoded dates and make sales = quantity * |price|.

    Ship and due dates earlier than the order date are dropped. Price is
    kept as parsed, sign included; only the sales amount is rebuilt. With
    no usable price the rebuilt amount is null.
    """
    df = df.reset_index(drop=True)
    order_dt = validate_int_dates(df['sls_order_dt'])
    ship_dt = validate_int_dates(df['sls_ship_dt'])
    due_dt = validate_int_dates(df['sls_due_dt'])
    ship_dt = ship_dt.mask((ship_dt < order_dt).fillna(False))
    due_dt = due_dt.mask((due_dt < order_dt).fillna(False))

    quantity = to_int(df['sls_quantity'])
    qty = quantity.astype('float64')
    price = to_number(df['sls_price'])
    sales = to_number(df['sls_sales'])

    expected = qty * price.abs()
    recompute = sales.isna() | (sales <= 0) | sales.ne(expected)
    sales = sales.mask(recompute, expected)

    return pd.DataFrame({
        'sls_ord_num': clean_text(df['sls_ord_num']),
        'sls_prd_key': clean_text(df['sls_prd_key']),
        'sls_cust_id': to_int(df['sls_cust_id']),
        'sls_order_dt': order_dt,
        'sls_ship_dt': ship_dt,
        'sls_due_dt': due_dt,
        'sls_sales': sales,
        'sls_quantity': quantity,
        'sls_price': price,
    })


def normalize_erp_customers(df: pd.DataFrame, today: Optional[date] = None) -> pd.DataFrame:
    df = df.reset_index(drop=True)
    reference = pd.Timestamp(today or date.today()).normalize()
    bdate = to_timestamp(df['bdate']).dt.normalize()
    return pd.DataFrame({
        'cid': strip_prefix(df['cid']),
        'bdate': bdate.mask(bdate > reference),
        'gen': map_code(df['gen'], GENDER),
    })


def normalize_erp_locations(df: pd.DataFrame) -> pd.DataFrame:
    df = df.reset_index(drop=True)
    return pd.DataFrame({
        'cid': strip_punctuation(df['cid']),
        'cntry': normalize_country(df['cntry']),
    })


def normalize_erp_categories(df: pd.DataFrame) -> pd.DataFrame:
    df = df.reset_index(drop=True)
    return pd.DataFrame({column: clean_text(df[column]) for column in SILVER_COLUMNS['erp_px_cat_g1v2']})


NORMALIZERS: Dict[str, Callable[..., pd.DataFrame]] = {
    'crm_cust_info': normalize_customers,
    'crm_prd_info': normalize_products,
    'crm_sales_details': normalize_sales,
    'erp_cust_az12': normalize_erp_customers,
    'erp_loc_a101': normalize_erp_locations,
    'erp_px_cat_g1v2': normalize_erp_categories,
}


def normalize(entity: str, df: pd.DataFrame, today: Optional[date] = None) -> pd.DataFrame:
    """
    Normalize the raw rows of one entity.

    Args:
        entity: Source table name, e.g. 'crm_cust_info'
        df: Raw rows for that entity
        today: Reference day for future-date checks (default: today)

    Returns:
        Cleaned rows with the silver column set
    """
    if entity not in NORMALIZERS:
        raise ValueError(f"Unknown entity: {entity}")
    if entity == 'erp_cust_az12':
        return NORMALIZERS[entity](df, today=today)
    return NORMALIZERS[entity](df)
