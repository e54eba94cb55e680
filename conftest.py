# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Test environment: in-memory storage and no seeded admin unless asked for."""

import os

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SEED_DEFAULT_ADMIN", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
