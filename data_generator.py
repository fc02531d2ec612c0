#!/usr/bin/env python3
"""
Sample Source Data Generator

Writes the six CRM/ERP extracts the warehouse loads, with the kinds of
defects the silver layer cleans up: duplicate customer versions, padded and
lower-case codes, NAS-prefixed ids, CR/LF noise, malformed integer dates and
inconsistent sales amounts.
"""
import os
from datetime import date, timedelta
from typing import Dict, Optional

import numpy as np
import pandas as pd

from sqlite_warehouse.bronze import SOURCES
from utils.logger import setup_logger

logger = setup_logger("Data_Generator", log_file="data_generator.log")

DEFAULT_OUTPUT_DIR = "datasets"
DEFAULT_NUM_CUSTOMERS = 200
DEFAULT_NUM_PRODUCTS = 40
DEFAULT_NUM_ORDERS = 600
DEFAULT_SEED = 42

FIRST_NAMES = ['Jon', 'Elizabeth', 'Eugene', 'Ruben', 'Christy', 'Elizabeth', 'Julio', 'Janet', 'Marco']
LAST_NAMES = ['Yang', 'Johnson', 'Huang', 'Torres', 'Zhu', 'Ruiz', 'Alvarez', 'Mehta', 'Verhoff']
MARITAL_CODES = ['S', 'M', ' S', 'm ', '', None]
GENDER_CODES = ['F', 'M', ' m ', 'f', '', None, 'X']
ERP_GENDERS = ['Male', 'Female', 'M', 'F', ' F ', '', None]
COUNTRIES = ['US', 'USA', 'United States', 'DE', 'Germany', 'Australia', ' Canada', 'France\r', '', None]

CATEGORIES = {
    'AC_HE': ('Accessories', 'Helmets'),
    'AC_BR': ('Accessories', 'Bike Racks'),
    'BI_MB': ('Bikes', 'Mountain Bikes'),
    'BI_RB': ('Bikes', 'Road Bikes'),
    'CL_JE': ('Clothing', 'Jerseys'),
    'CO_RF': ('Components', 'Road Frames'),
}
PRODUCT_LINES = ['M', 'R', 'S', 'T', ' R ', 'r', None]
PRICES = [3, 9, 25, 35, 54, 120, 540, 2443]


def _pick(rng: np.random.Generator, values):
    return values[rng.integers(len(values))]


def _int_date(day: date) -> int:
    return int(day.strftime("%Y%m%d"))


def generate_customers(rng: np.random.Generator, num_customers: int) -> pd.DataFrame:
    """CRM customers; roughly one in ten gets an older duplicate version."""
    records = []
    base_day = date(2025, 10, 6)
    for i in range(num_customers):
        cst_id = 11000 + i
        record = {
            'cst_id': str(cst_id),
            'cst_key': f"AW{cst_id:08d}",
            'cst_firstname': _pick(rng, FIRST_NAMES) + (' ' if rng.random() < 0.2 else ''),
            'cst_lastname': ('  ' if rng.random() < 0.2 else '') + _pick(rng, LAST_NAMES),
            'cst_marital_status': _pick(rng, MARITAL_CODES),
            'cst_gndr': _pick(rng, GENDER_CODES),
            'cst_create_date': (base_day - timedelta(days=int(rng.integers(0, 30)))).isoformat(),
        }
        records.append(record)
        if rng.random() < 0.1:
            stale = dict(record)
            stale['cst_create_date'] = (base_day - timedelta(days=int(rng.integers(60, 400)))).isoformat()
            stale['cst_marital_status'] = None
            records.append(stale)

    # A few rows without a business key
    for _ in range(3):
        records.append({
            'cst_id': None, 'cst_key': 'SF566', 'cst_firstname': None, 'cst_lastname': None,
            'cst_marital_status': None, 'cst_gndr': None, 'cst_create_date': base_day.isoformat(),
        })
    return pd.DataFrame(records, columns=SOURCES['crm_cust_info'].columns)


def generate_products(rng: np.random.Generator, num_products: int) -> pd.DataFrame:
    """CRM products; each product key has one to three versions with distinct start dates."""
    records = []
    prd_id = 210
    cat_ids = list(CATEGORIES)
    for i in range(num_products):
        cat_id = _pick(rng, cat_ids)
        key = f"{cat_id.replace('_', '-')}-P{i:03d}-{int(rng.integers(38, 62))}"
        start = date(2011, 7, 1)
        for _ in range(int(rng.integers(1, 4))):
            records.append({
                'prd_id': str(prd_id),
                'prd_key': key,
                'prd_nm': f"Product {i:03d}",
                'prd_cost': None if rng.random() < 0.05 else str(int(rng.integers(1, 1500))),
                'prd_line': _pick(rng, PRODUCT_LINES),
                'prd_start_dt': start.isoformat(),
                # Source end dates are unreliable and get rebuilt
                'prd_end_dt': (start - timedelta(days=int(rng.integers(1, 300)))).isoformat(),
            })
            prd_id += 1
            start = start + timedelta(days=int(rng.integers(180, 500)))
    return pd.DataFrame(records, columns=SOURCES['crm_prd_info'].columns)


def generate_sales(rng: np.random.Generator, num_orders: int, products: pd.DataFrame,
                   num_customers: int) -> pd.DataFrame:
    """CRM sales lines with malformed dates and broken sales/price figures."""
    product_keys = products['prd_key'].str.slice(6).unique().tolist()
    records = []
    for i in range(num_orders):
        order_day = date(2010, 12, 29) + timedelta(days=int(rng.integers(0, 1500)))
        quantity = int(rng.integers(1, 4))
        price = float(_pick(rng, PRICES))
        sales = quantity * price

        roll = rng.random()
        if roll < 0.04:
            sales = None
        elif roll < 0.08:
            sales = -sales
        elif roll < 0.12:
            sales = sales + 10
        elif roll < 0.15:
            price = None
        elif roll < 0.18:
            price = -price

        order_dt = _int_date(order_day)
        if rng.random() < 0.03:
            order_dt = _pick(rng, [0, 5489, 32154])

        records.append({
            'sls_ord_num': f"SO{43697 + i}",
            'sls_prd_key': _pick(rng, product_keys),
            'sls_cust_id': str(11000 + int(rng.integers(num_customers))),
            'sls_order_dt': str(order_dt),
            'sls_ship_dt': str(_int_date(order_day + timedelta(days=7))),
            'sls_due_dt': str(_int_date(order_day + timedelta(days=12))),
            'sls_sales': None if sales is None else str(sales),
            'sls_quantity': str(quantity),
            'sls_price': None if price is None else str(price),
        })
    return pd.DataFrame(records, columns=SOURCES['crm_sales_details'].columns)


def generate_erp_customers(rng: np.random.Generator, num_customers: int) -> pd.DataFrame:
    records = []
    for i in range(num_customers):
        key = f"AW{11000 + i:08d}"
        birth = date(1940, 1, 1) + timedelta(days=int(rng.integers(0, 25000)))
        if rng.random() < 0.03:
            birth = date(2060, 1, 1) + timedelta(days=int(rng.integers(0, 3000)))
        records.append({
            'cid': f"NAS{key}" if rng.random() < 0.5 else key,
            'bdate': birth.isoformat(),
            'gen': _pick(rng, ERP_GENDERS),
        })
    return pd.DataFrame(records, columns=SOURCES['erp_cust_az12'].columns)


def generate_erp_locations(rng: np.random.Generator, num_customers: int) -> pd.DataFrame:
    records = [
        {'cid': f"AW-{11000 + i:08d}", 'cntry': _pick(rng, COUNTRIES)}
        for i in range(num_customers)
    ]
    return pd.DataFrame(records, columns=SOURCES['erp_loc_a101'].columns)


def generate_erp_categories(rng: np.random.Generator) -> pd.DataFrame:
    records = [
        {
            'id': cat_id,
            'cat': cat,
            'subcat': subcat,
            'maintenance': _pick(rng, ['Yes', 'No']) + ('\r' if rng.random() < 0.3 else ''),
        }
        for cat_id, (cat, subcat) in CATEGORIES.items()
    ]
    return pd.DataFrame(records, columns=SOURCES['erp_px_cat_g1v2'].columns)


def generate_sources(
    output_dir: str = DEFAULT_OUTPUT_DIR,
    num_customers: int = DEFAULT_NUM_CUSTOMERS,
    num_products: int = DEFAULT_NUM_PRODUCTS,
    num_orders: int = DEFAULT_NUM_ORDERS,
    seed: Optional[int] = DEFAULT_SEED
) -> Dict[str, str]:
    """
    Generate all six extracts under output_dir.

    Returns:
        Entity name -> path of the written CSV file
    """
    rng = np.random.default_rng(seed)
    products = generate_products(rng, num_products)
    frames = {
        'crm_cust_info': generate_customers(rng, num_customers),
        'crm_prd_info': products,
        'crm_sales_details': generate_sales(rng, num_orders, products, num_customers),
        'erp_cust_az12': generate_erp_customers(rng, num_customers),
        'erp_loc_a101': generate_erp_locations(rng, num_customers),
        'erp_px_cat_g1v2': generate_erp_categories(rng),
    }

    paths = {}
    for entity, df in frames.items():
        source = SOURCES[entity]
        folder = os.path.join(output_dir, source.system)
        os.makedirs(folder, exist_ok=True)
        path = os.path.join(folder, source.file_name)
        df.to_csv(path, index=False)
        paths[entity] = path
        logger.info(f"Generated {len(df)} {entity} records at {path}")
    return paths


if __name__ == "__main__":
    BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__)))
    generate_sources(os.path.join(BASE_DIR, DEFAULT_OUTPUT_DIR))
