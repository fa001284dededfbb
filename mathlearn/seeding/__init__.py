"""
JSON-config driven database seeding
"""
from mathlearn.seeding.seeder import JsonSeeder, SeedError, TableResult, TableConfig

__all__ = ["JsonSeeder", "SeedError", "TableResult", "TableConfig"]
