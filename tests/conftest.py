"""
Pytest configuration and fixtures for the warehouse tests.
"""
import os
import tempfile
from datetime import date

# Loggers are created at import time; keep their files out of the repo
os.environ.setdefault("WAREHOUSE_LOG_DIR", tempfile.mkdtemp(prefix="warehouse-logs-"))

import pandas as pd
import pytest

from sqlite_warehouse.bronze import SOURCES


REFERENCE_DAY = date(2024, 6, 1)


def write_source(source_dir, entity, rows):
    """Write rows (list of dicts) as the CSV extract of an entity."""
    source = SOURCES[entity]
    folder = os.path.join(str(source_dir), source.system)
    os.makedirs(folder, exist_ok=True)
    path = os.path.join(folder, source.file_name)
    pd.DataFrame(rows, columns=source.columns).to_csv(path, index=False)
    return path


@pytest.fixture
def today():
    return REFERENCE_DAY


@pytest.fixture
def raw_customers():
    return pd.DataFrame([
        {'cst_id': '11000', 'cst_key': 'AW00011000', 'cst_firstname': ' Jon ', 'cst_lastname': 'Yang',
         'cst_marital_status': 'M', 'cst_gndr': ' m ', 'cst_create_date': '2025-10-06'},
        {'cst_id': '11000', 'cst_key': 'AW00011000', 'cst_firstname': 'Jon', 'cst_lastname': 'Yang',
         'cst_marital_status': 's', 'cst_gndr': 'M', 'cst_create_date': '2024-01-01'},
        {'cst_id': '11001', 'cst_key': 'AW00011001', 'cst_firstname': 'Eugene', 'cst_lastname': ' Huang',
         'cst_marital_status': None, 'cst_gndr': 'X', 'cst_create_date': '2025-10-06'},
        {'cst_id': None, 'cst_key': 'SF566', 'cst_firstname': None, 'cst_lastname': None,
         'cst_marital_status': None, 'cst_gndr': None, 'cst_create_date': '2025-10-06'},
    ])


@pytest.fixture
def raw_products():
    return pd.DataFrame([
        {'prd_id': '212', 'prd_key': 'AC-HE-HL-U509-R', 'prd_nm': 'Sport-100 Helmet- Red',
         'prd_cost': '12', 'prd_line': 'S', 'prd_start_dt': '2011-07-01', 'prd_end_dt': '2007-12-28'},
        {'prd_id': '213', 'prd_key': 'AC-HE-HL-U509-R', 'prd_nm': 'Sport-100 Helmet- Red',
         'prd_cost': '14', 'prd_line': 's ', 'prd_start_dt': '2012-07-01', 'prd_end_dt': '2008-12-27'},
        {'prd_id': '214', 'prd_key': 'AC-HE-HL-U509-R', 'prd_nm': 'Sport-100 Helmet- Red',
         'prd_cost': None, 'prd_line': 'S', 'prd_start_dt': '2013-07-01', 'prd_end_dt': None},
        {'prd_id': '310', 'prd_key': 'BI-RB-BK-R93R-62', 'prd_nm': 'Road-150 Red- 62',
         'prd_cost': '2171', 'prd_line': ' R ', 'prd_start_dt': '2011-07-01', 'prd_end_dt': None},
        {'prd_id': '400', 'prd_key': 'CO-RF-FR-R92B-58', 'prd_nm': 'HL Road Frame',
         'prd_cost': '1431', 'prd_line': None, 'prd_start_dt': '2003-07-01', 'prd_end_dt': None},
    ])


@pytest.fixture
def raw_sales():
    return pd.DataFrame([
        {'sls_ord_num': 'SO43697', 'sls_prd_key': 'BK-R93R-62', 'sls_cust_id': '11000',
         'sls_order_dt': '20101229', 'sls_ship_dt': '20110105', 'sls_due_dt': '20110110',
         'sls_sales': '3578', 'sls_quantity': '1', 'sls_price': '3578'},
        {'sls_ord_num': 'SO43698', 'sls_prd_key': 'BK-M82S-44', 'sls_cust_id': '11001',
         'sls_order_dt': '0', 'sls_ship_dt': '20110105', 'sls_due_dt': '2011011',
         'sls_sales': None, 'sls_quantity': '2', 'sls_price': '25'},
        {'sls_ord_num': 'SO43699', 'sls_prd_key': 'BK-M82S-44', 'sls_cust_id': '11002',
         'sls_order_dt': '20110110', 'sls_ship_dt': '20110105', 'sls_due_dt': '20240230',
         'sls_sales': '-50', 'sls_quantity': '2', 'sls_price': '-25'},
        {'sls_ord_num': 'SO43700', 'sls_prd_key': 'HL-U509-R', 'sls_cust_id': '11003',
         'sls_order_dt': '20110110', 'sls_ship_dt': '20110117', 'sls_due_dt': '20110122',
         'sls_sales': '70', 'sls_quantity': '2', 'sls_price': None},
        {'sls_ord_num': 'SO43701', 'sls_prd_key': 'HL-U509-R', 'sls_cust_id': '11003',
         'sls_order_dt': '20110110', 'sls_ship_dt': '20110117', 'sls_due_dt': '20110122',
         'sls_sales': '99', 'sls_quantity': '3', 'sls_price': '35'},
    ])


@pytest.fixture
def raw_erp_customers():
    return pd.DataFrame([
        {'cid': 'NAS12345', 'bdate': '1971-10-06', 'gen': 'Male'},
        {'cid': 'AW00011001', 'bdate': '2099-01-01', 'gen': ' F '},
        {'cid': ' NAS00011002', 'bdate': 'not a date', 'gen': ''},
    ])


@pytest.fixture
def raw_locations():
    return pd.DataFrame([
        {'cid': 'AW-00011000', 'cntry': 'USA'},
        {'cid': 'AW-00011001', 'cntry': ' DE'},
        {'cid': 'AW-00011002', 'cntry': 'Australia\r\n'},
        {'cid': 'AW-00011003', 'cntry': ''},
        {'cid': 'AW-00011004', 'cntry': None},
        {'cid': 'AW-00011005', 'cntry': 'united states'},
    ])


@pytest.fixture
def raw_categories():
    return pd.DataFrame([
        {'id': 'AC_HE', 'cat': 'Accessories', 'subcat': 'Helmets', 'maintenance': 'Yes\r'},
        {'id': 'CO_RF', 'cat': ' Components', 'subcat': 'Road Frames', 'maintenance': ' No\r\n'},
    ])


@pytest.fixture
def source_dir(tmp_path, raw_customers, raw_products, raw_sales,
               raw_erp_customers, raw_locations, raw_categories):
    """A source directory holding all six extracts built from the raw fixtures."""
    directory = tmp_path / "datasets"
    frames = {
        'crm_cust_info': raw_customers,
        'crm_prd_info': raw_products,
        'crm_sales_details': raw_sales,
        'erp_cust_az12': raw_erp_customers,
        'erp_loc_a101': raw_locations,
        'erp_px_cat_g1v2': raw_categories,
    }
    for entity, df in frames.items():
        write_source(directory, entity, df.to_dict(orient='records'))
    return str(directory)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "database" / "warehouse.db")
