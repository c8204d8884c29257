"""
Example 04: Transactions

This example demonstrates transaction management with automatic rollback on errors.
"""

from better_sql import (
    BetterSqlSupport,
    BetterSqlTransaction,
    ConnectionConfig,
    ConnectionManager,
    run_in_transaction,
)
import sqlite3
import tempfile
from pathlib import Path


support = BetterSqlSupport()


def create_user(conn, name, email):
    return support.insert(
        conn,
        "INSERT INTO users (name, email) VALUES (:name, :email)",
        lambda ps: (ps.set_string("name", name), ps.set_string("email", email)),
    )


def log_action(conn, action):
    support.update(
        conn,
        "INSERT INTO audit_log (action) VALUES (:action)",
        lambda ps: ps.set_string("action", action),
    )


def count_users(conn):
    return support.query(conn, "SELECT COUNT(*) FROM users", lambda row: row.get_int(1))


def main():
    # Set up database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    manager = ConnectionManager(ConnectionConfig(driver="sqlite", database=db_path))

    with manager.get_connection() as conn:
        conn.execute("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE
            )
        """)
        conn.execute("""
            CREATE TABLE audit_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                action TEXT NOT NULL,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)

        print("=== Transaction Management ===\n")

        # Example 1: Successful transaction
        print("1. Successful transaction:")
        with BetterSqlTransaction(conn):
            create_user(conn, "Alice", "alice@example.com")
            log_action(conn, "user_created")
            # Commits automatically on exit
        print(f"   Users after commit: {count_users(conn)}\n")

        # Example 2: Transaction with rollback on error
        print("2. Transaction with error (automatic rollback):")
        try:
            with BetterSqlTransaction(conn):
                create_user(conn, "Bob", "bob@example.com")
                # This will fail due to duplicate email
                create_user(conn, "Charlie", "alice@example.com")
        except sqlite3.IntegrityError as e:
            print(f"   Error occurred: {type(e).__name__}")
            print("   Transaction was rolled back automatically\n")

        print(f"   Users after rollback: {count_users(conn)} (Bob was not added)\n")

    # Example 3: A unit of work on its own connection
    print("3. Multiple operations in transaction:")

    def onboard(conn):
        for name in ("Dave", "Eve"):
            create_user(conn, name, f"{name.lower()}@example.com")
            log_action(conn, "user_created")
        return count_users(conn)

    count = run_in_transaction(manager, onboard)
    print(f"   Users after transaction: {count}\n")

    # Clean up
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
