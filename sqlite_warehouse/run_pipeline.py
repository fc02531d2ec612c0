#!/usr/bin/env python3
"""
Warehouse pipeline entry point.

Runs a full reload: bronze ingestion from the CSV extracts, then the silver
normalization of all six entities. Optionally exports every table to
Parquet and prints the data quality report of a layer.
"""
import os
import sys
import sqlite3
import argparse
import datetime
from typing import Dict, List, Optional

import pandas as pd

from sqlite_warehouse.bronze import SOURCES, bronze_table, ingest_all
from sqlite_warehouse.config import PipelineConfig
from sqlite_warehouse.quality_checks import run_checks, summarize
from sqlite_warehouse.silver import silver_table, transform_bronze_to_silver
from utils.logger import setup_logger

logger = setup_logger("ETL_Pipeline")


class PipelineError(Exception):
    """A layer of the warehouse load failed."""


def layer_tables(layer: str) -> List[str]:
    naming = bronze_table if layer == "bronze" else silver_table
    return [naming(entity) for entity in SOURCES]


def export_table_to_parquet(db_file: str, table_name: str, output_file: str) -> bool:
    conn = sqlite3.connect(db_file)
    try:
        df = pd.read_sql(f"SELECT * FROM {table_name}", conn)
    finally:
        conn.close()
    if df.empty:
        logger.warning(f"Table '{table_name}' in {db_file} is empty. No data to export.")
        return False
    df.to_parquet(output_file, index=False)
    logger.info(f"Exported {len(df)} records from table '{table_name}' to {output_file}")
    return True


def export_layers(db_file: str, output_dir: str) -> List[str]:
    """Export every bronze and silver table; file names carry a run timestamp."""
    os.makedirs(output_dir, exist_ok=True)
    ts = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    exported = []
    for layer in ("bronze", "silver"):
        for table in layer_tables(layer):
            output_file = os.path.join(output_dir, f"{ts}_{table}.parquet")
            if export_table_to_parquet(db_file, table, output_file):
                exported.append(output_file)
    return exported


def get_layer_stats(db_file: str) -> Dict[str, int]:
    """
    Get record counts for every bronze and silver table.

    Returns:
        Table name -> row count, -1 for tables that don't exist yet
    """
    stats = {}
    conn = sqlite3.connect(db_file)
    try:
        cursor = conn.cursor()
        for layer in ("bronze", "silver"):
            for table in layer_tables(layer):
                try:
                    cursor.execute(f"SELECT COUNT(*) FROM {table}")
                    stats[table] = cursor.fetchone()[0]
                except sqlite3.OperationalError:
                    stats[table] = -1
    finally:
        conn.close()
    return stats


def run(config: PipelineConfig) -> Dict[str, int]:
    """
    Run the full reload described by config.

    Returns:
        Layer statistics after the load

    Raises:
        PipelineError: if the bronze or silver layer fails
    """
    logger.info(f"Starting warehouse load with {config}")

    if config.skip_bronze:
        logger.info("Skipping bronze ingestion; reusing existing bronze tables")
    elif not ingest_all(config.source_dir, config.db_path):
        raise PipelineError("Bronze layer processing failed")

    if not transform_bronze_to_silver(config.db_path):
        raise PipelineError("Silver layer processing failed")

    if config.export:
        exported = export_layers(config.db_path, config.export_dir)
        logger.info(f"Exported {len(exported)} Parquet files to {config.export_dir}")

    stats = get_layer_stats(config.db_path)
    logger.info(f"Pipeline completed successfully. Layer statistics: {stats}")
    return stats


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point for the pipeline."""
    parser = argparse.ArgumentParser(description='Load the CRM/ERP warehouse (bronze -> silver)')
    parser.add_argument('--source-dir', type=str, help='Folder with source_crm/ and source_erp/ extracts')
    parser.add_argument('--db', type=str, help='Path to SQLite database')
    parser.add_argument('--export-dir', type=str, help='Directory for exported Parquet files')
    parser.add_argument('--export', action='store_true', help='Export bronze and silver tables to Parquet')
    parser.add_argument('--skip-bronze', action='store_true', help='Rebuild silver from existing bronze tables')
    parser.add_argument('--check', choices=['bronze', 'silver'], help='Print the data quality report of a layer')
    parser.add_argument('--check-only', action='store_true', help='Only run the quality report, load nothing')

    args = parser.parse_args(argv)

    config = PipelineConfig(
        source_dir=args.source_dir,
        db_path=args.db,
        export_dir=args.export_dir,
        skip_bronze=args.skip_bronze,
        export=args.export
    )

    if args.check_only and not args.check:
        parser.error("--check-only requires --check")

    try:
        if not args.check_only:
            stats = run(config)
            print("Layer statistics:")
            for table, count in stats.items():
                print(f"  {table}: {count} records")

        if args.check:
            issues = summarize(run_checks(config.db_path, args.check))
            print(f"\nData quality issues ({args.check}):")
            for name, count in issues.items():
                print(f"  {name}: {count}")
    except (PipelineError, sqlite3.Error, pd.errors.DatabaseError) as e:
        logger.error(f"Error running pipeline: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
