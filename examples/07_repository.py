"""
Example 07: Repository Pattern

This example demonstrates wrapping BetterSqlMapper in a repository for DDD-style code organization.
"""

from better_sql import BetterSqlMapper, ConnectionConfig, ConnectionManager, key
from dataclasses import dataclass, field
from typing import Optional
import tempfile
from pathlib import Path


@dataclass
class User:
    """User entity"""
    __table__ = "users"

    id: Optional[int] = field(default=None, metadata=key())
    name: str = ""
    email: str = ""
    active: bool = True


class UserRepository:
    """Repository for User entities"""

    def __init__(self, manager: ConnectionManager):
        self.manager = manager
        self.mapper = BetterSqlMapper(adapter=manager.adapter)

    def find_by_id(self, user_id: int) -> Optional[User]:
        """Find user by ID"""
        with self.manager.get_connection() as conn:
            return self.mapper.find(conn, user_id, User)

    def find_by_ids(self, user_ids: list[int]) -> list[User]:
        """Find users by ID with a single IN query"""
        with self.manager.get_connection() as conn:
            return self.mapper.find_all(conn, user_ids, User)

    def find_all_active(self) -> list[User]:
        """Find all active users"""
        with self.manager.get_connection() as conn:
            return (
                self.mapper.select("SELECT * FROM users WHERE active = :active", User)
                .bind(lambda ps: ps.set_boolean("active", True))
                .list(conn)
            )

    def save(self, user: User) -> User:
        """Save user (insert or update)"""
        with self.manager.get_connection() as conn:
            if user.id is None:
                return self.mapper.insert(conn, user)
            self.mapper.update(conn, user)
            return user

    def delete(self, user_id: int) -> None:
        """Delete user by ID"""
        with self.manager.get_connection() as conn:
            self.mapper.delete_by_key(conn, user_id, User)


def main():
    # Set up database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    manager = ConnectionManager(ConnectionConfig(driver="sqlite", database=db_path))
    with manager.get_connection() as conn:
        conn.execute("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                active INTEGER DEFAULT 1
            )
        """)

    user_repo = UserRepository(manager)
    user_repo.save(User(name="Alice", email="alice@example.com"))
    user_repo.save(User(name="Bob", email="bob@example.com", active=False))

    print("=== Repository Pattern ===\n")

    # Find by ID
    print("1. Find user by ID:")
    user = user_repo.find_by_id(1)
    if user:
        print(f"   Found: {user.name} ({user.email})\n")

    # Find all active users
    print("2. Find all active users:")
    active_users = user_repo.find_all_active()
    print(f"   Active users: {len(active_users)}")
    for u in active_users:
        print(f"   - {u.name}")
    print()

    # Save new user
    print("3. Save new user:")
    saved_user = user_repo.save(User(name="Charlie", email="charlie@example.com"))
    print(f"   Created user with ID: {saved_user.id}\n")

    # Update user
    print("4. Update user:")
    user = user_repo.find_by_id(1)
    if user:
        user.email = "alice.updated@example.com"
        user_repo.save(user)
        print(f"   Updated user #{user.id}\n")

    # Find several users at once
    print("5. Find users by ID:")
    for u in user_repo.find_by_ids([1, 3]):
        print(f"   - #{u.id} {u.name}")
    print()

    # Delete user
    print("6. Delete user:")
    user_repo.delete(2)
    print("   Deleted user #2\n")

    # Verify final state
    print("7. Final active users:")
    for u in user_repo.find_all_active():
        print(f"   - {u.name} ({u.email})")
    print()

    # Clean up
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
