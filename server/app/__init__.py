"""Breath guide service package.

Environment files are loaded here so ``app.config`` sees them on import.
"""
from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv


SERVER_DIR = Path(__file__).resolve().parent.parent
# Later files win; .env.local carries developer overrides.
ENV_FILES = (".env", ".env.local")

for _index, _name in enumerate(ENV_FILES):
    load_dotenv(SERVER_DIR / _name, override=_index > 0)
