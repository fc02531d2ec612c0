"""
Pipeline configuration.

Defaults can be overridden through environment variables, which are also
read from a local .env file. Logging reads WAREHOUSE_LOG_DIR and
WAREHOUSE_LOG_LEVEL directly, see utils.logger.
"""
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

DEFAULT_SOURCE_DIR = "datasets"
DEFAULT_DB_PATH = "database/warehouse.db"
DEFAULT_EXPORT_DIR = "data/exports"


class PipelineConfig:
    """Paths and switches for one warehouse run."""

    def __init__(
        self,
        source_dir: Optional[str] = None,
        db_path: Optional[str] = None,
        export_dir: Optional[str] = None,
        skip_bronze: bool = False,
        export: bool = False
    ):
        """
        Build a configuration; unset values fall back to the environment,
        then to the module defaults.

        Args:
            source_dir: Folder holding source_crm/ and source_erp/ CSV extracts
            db_path: Path to the SQLite warehouse database
            export_dir: Directory for Parquet exports
            skip_bronze: Re-run silver from the existing bronze tables
            export: Export every layer to Parquet after loading
        """
        self.source_dir = source_dir or os.environ.get("WAREHOUSE_SOURCE_DIR", DEFAULT_SOURCE_DIR)
        self.db_path = db_path or os.environ.get("WAREHOUSE_DB_PATH", DEFAULT_DB_PATH)
        self.export_dir = export_dir or os.environ.get("WAREHOUSE_EXPORT_DIR", DEFAULT_EXPORT_DIR)
        self.skip_bronze = skip_bronze
        self.export = export

    def __repr__(self) -> str:
        return (
            f"PipelineConfig(source_dir={self.source_dir!r}, db_path={self.db_path!r}, "
            f"export_dir={self.export_dir!r}, skip_bronze={self.skip_bronze}, export={self.export})"
        )
