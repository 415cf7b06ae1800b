#!/usr/bin/env python3
"""
Create the MarketTech tables on the configured DATABASE_URL

Tables that already exist are left untouched.

Usage:
    python3 scripts/init_db.py

Author: TM3
Date: 2026-02-09
"""
import os
import sys

# Add backend directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

from markettech.core.database import Base, check_database_connection, init_db


def main():
    print("=" * 70)
    print("  🗄️  INICIALIZANDO BASE DE DATOS")
    print("=" * 70)

    try:
        latency = check_database_connection()
        print(f"\n  ✅ Conexión OK ({latency} ms)")

        init_db()
        print(f"  ✅ Tablas listas: {', '.join(sorted(Base.metadata.tables))}")
    except Exception as e:
        print(f"\n  ❌ Error inicializando la base de datos: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
