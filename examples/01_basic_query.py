"""
Example 01: Basic Query Execution

This example demonstrates :named parameters and IN-list expansion with BetterSqlSupport.
"""

from better_sql import BetterSqlSupport, ConnectionConfig, ConnectionManager, create_statement
import tempfile
from pathlib import Path


def main():
    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    manager = ConnectionManager(ConnectionConfig(driver="sqlite", database=db_path))
    support = BetterSqlSupport()

    with manager.get_connection() as conn:
        conn.execute("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                active INTEGER DEFAULT 1
            )
        """)
        for name, active in [("Alice", True), ("Bob", True), ("Charlie", False)]:
            support.update(
                conn,
                "INSERT INTO users (name, email, active) VALUES (:name, :email, :active)",
                lambda ps: (
                    ps.set_string("name", name),
                    ps.set_string("email", f"{name.lower()}@example.com"),
                    ps.set_boolean("active", active),
                ),
            )

        print("=== Basic Query Execution ===\n")

        # query: map the first row
        name = support.query(
            conn,
            "SELECT name FROM users WHERE id = :id",
            lambda row: row.get_str("name"),
            lambda ps: ps.set_long("id", 1),
        )
        print(f"query result: {name}\n")

        # query_list: map every row
        emails = support.query_list(
            conn,
            "SELECT email FROM users WHERE active = :active ORDER BY id",
            lambda row: row.get_str(1),
            lambda ps: ps.set_boolean("active", True),
        )
        print(f"query_list result ({len(emails)} rows):")
        for email in emails:
            print(f"  - {email}")
        print()

        # IN clause: one :ids parameter expands to as many placeholders as values
        names = support.query_list(
            conn,
            "SELECT name FROM users WHERE id IN (:ids)",
            lambda row: row.get_str("name"),
            lambda ps: ps.set_array("ids", [1, 3]),
        )
        print(f"IN clause result: {names}\n")

        # Statements can also be driven by hand
        with create_statement(conn, "SELECT COUNT(*) FROM users") as ps:
            with ps.execute_query() as rs:
                print(f"Total users: {rs.fetch_one().get_int(1)}\n")

    # Clean up
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
