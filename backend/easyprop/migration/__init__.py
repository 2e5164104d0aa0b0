"""
Import utilities for moving legacy JSON exports into the database
"""

from easyprop.migration.importers import ImportResult, import_all, import_records, import_table

__all__ = ["ImportResult", "import_all", "import_records", "import_table"]
