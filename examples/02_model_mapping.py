"""
Example 02: Model Mapping

This example demonstrates mapping rows to Python dataclasses and Pydantic models,
and the SQL that BetterSqlGenerator derives from them.
"""

from better_sql import (
    BetterSqlGenerator,
    BetterSqlMapper,
    ConnectionConfig,
    ConnectionManager,
    TableRegistry,
    column,
    key,
    transient,
)
from dataclasses import dataclass, field
from typing import Optional
from pydantic import BaseModel, Field
import tempfile
from pathlib import Path


@dataclass
class UserDataclass:
    """User model using dataclass"""
    __table__ = "users"

    id: Optional[int] = field(default=None, metadata=key())
    name: str = ""
    email: str = field(default="", metadata=column("email_address"))
    active: bool = True
    display_name: Optional[str] = field(default=None, metadata=transient())


class UserPydantic(BaseModel):
    """User model using Pydantic"""
    __table__ = "users"

    id: Optional[int] = Field(default=None, json_schema_extra=key())
    name: str
    email: str = Field(json_schema_extra=column("email_address"))
    active: bool


def main():
    # Set up database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    manager = ConnectionManager(ConnectionConfig(driver="sqlite", database=db_path))
    registry = TableRegistry()
    generator = BetterSqlGenerator()
    mapper = BetterSqlMapper(registry=registry)

    print("=== Model Mapping ===\n")

    # Generated SQL
    print("1. Generated SQL:")
    table = registry.resolve(UserDataclass)
    print(f"   {generator.select_named(table)}")
    print(f"   {generator.insert(table)}")
    print(f"   {generator.update(table)}")
    print(f"   {generator.bulk_delete(table)}\n")

    with manager.get_connection() as conn:
        conn.execute("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                email_address TEXT NOT NULL,
                active INTEGER NOT NULL
            )
        """)

        # Map to dataclass
        print("2. Dataclass Mapping:")
        alice = mapper.insert(conn, UserDataclass(name="Alice", email="alice@example.com"))
        mapper.insert(conn, UserDataclass(name="Bob", email="bob@example.com", active=False))
        user = mapper.find(conn, alice.id, UserDataclass)
        print(f"   Type: {type(user).__name__}")
        print(f"   Data: {user}")
        print(f"   Access: user.name = {user.name}\n")

        # Map to Pydantic model
        print("3. Pydantic Model Mapping:")
        users = mapper.select("SELECT * FROM users ORDER BY id", UserPydantic).list(conn)
        print(f"   Count: {len(users)} users")
        for u in users:
            print(f"   - {u.name}: {u.email} (active={u.active})")
        print()

    # Clean up
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
