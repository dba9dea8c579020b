#!/usr/bin/env python3
"""
Seed a local SQLite database with a small shop schema for Smart Query.
Usage (from the repository root):
    python scripts/seed_demo_db.py [--path backend/demo.db]
The default path matches DATABASE_URL=sqlite:///./demo.db when the API is
started from backend/.
"""
import argparse
import random
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

DEFAULT_PATH = Path(__file__).resolve().parent.parent / "backend" / "demo.db"

DDL = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        name        TEXT    NOT NULL,
        email       TEXT    UNIQUE NOT NULL,
        country     TEXT,
        created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    """
    CREATE TABLE IF NOT EXISTS categories (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        name        TEXT UNIQUE NOT NULL
    )""",
    """
    CREATE TABLE IF NOT EXISTS products (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        category_id INTEGER REFERENCES categories(id),
        name        TEXT    NOT NULL,
        price       REAL    NOT NULL,
        stock       INTEGER DEFAULT 0
    )""",
    """
    CREATE TABLE IF NOT EXISTS orders (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id     INTEGER REFERENCES users(id),
        status      TEXT CHECK(status IN ('pending','paid','shipped','cancelled')),
        total       REAL,
        created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    """
    CREATE TABLE IF NOT EXISTS order_items (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id    INTEGER REFERENCES orders(id),
        product_id  INTEGER REFERENCES products(id),
        quantity    INTEGER NOT NULL,
        unit_price  REAL    NOT NULL
    )""",
    """
    CREATE TABLE IF NOT EXISTS payments (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id    INTEGER REFERENCES orders(id),
        method      TEXT,
        amount      REAL,
        paid_at     TIMESTAMP
    )""",
    # Framework tables; listed in FORBIDDEN_TABLES so generated SQL may not touch them
    """
    CREATE TABLE IF NOT EXISTS migrations (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        migration   TEXT NOT NULL,
        batch       INTEGER NOT NULL
    )""",
    """
    CREATE TABLE IF NOT EXISTS sessions (
        id          TEXT PRIMARY KEY,
        user_id     INTEGER,
        payload     TEXT,
        last_activity INTEGER
    )""",
]

STATUSES = ["pending", "paid", "shipped", "cancelled"]
CATEGORIES = ["Electronics", "Clothing", "Books", "Home & Garden", "Sports"]
COUNTRIES = ["US", "UK", "DE", "IN", "JP"]
METHODS = ["card", "paypal", "bank_transfer"]


def seed(path: Path, users: int = 100, orders: int = 400) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    cur = conn.cursor()

    for stmt in DDL:
        cur.execute(stmt)

    for name in CATEGORIES:
        cur.execute("INSERT OR IGNORE INTO categories(name) VALUES (?)", (name,))

    for i in range(1, users + 1):
        cur.execute(
            "INSERT OR IGNORE INTO users(name, email, country, created_at) VALUES (?,?,?,?)",
            (f"User {i}", f"user{i}@example.com", random.choice(COUNTRIES),
             datetime.now() - timedelta(days=random.randint(1, 730))),
        )

    for i in range(1, 31):
        cur.execute(
            "INSERT INTO products(category_id, name, price, stock) VALUES (?,?,?,?)",
            (random.randint(1, len(CATEGORIES)), f"Product {i}",
             round(random.uniform(5, 500), 2), random.randint(0, 200)),
        )

    for _ in range(orders):
        created = datetime.now() - timedelta(days=random.randint(0, 365))
        status = random.choice(STATUSES)
        cur.execute(
            "INSERT INTO orders(user_id, status, created_at) VALUES (?,?,?)",
            (random.randint(1, users), status, created),
        )
        order_id = cur.lastrowid

        total = 0.0
        for _ in range(random.randint(1, 4)):
            qty = random.randint(1, 5)
            price = round(random.uniform(5, 500), 2)
            total += qty * price
            cur.execute(
                "INSERT INTO order_items(order_id, product_id, quantity, unit_price) VALUES (?,?,?,?)",
                (order_id, random.randint(1, 30), qty, price),
            )
        cur.execute("UPDATE orders SET total=? WHERE id=?", (round(total, 2), order_id))

        if status in ("paid", "shipped"):
            cur.execute(
                "INSERT INTO payments(order_id, method, amount, paid_at) VALUES (?,?,?,?)",
                (order_id, random.choice(METHODS), round(total, 2), created + timedelta(hours=1)),
            )

    cur.execute("INSERT INTO migrations(migration, batch) VALUES ('create_users_table', 1)")
    conn.commit()
    conn.close()
    print(f"Demo database seeded: {path}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Smart Query demo database")
    parser.add_argument("--path", type=Path, default=DEFAULT_PATH)
    args = parser.parse_args()
    seed(args.path)
