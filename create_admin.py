import sys
import psycopg2
from autoprotect.core.security import hash_password
from autoprotect.core.config import settings
from autoprotect.core.enums import UserRole
from autoprotect.utils.validators import USERNAME_RE
from urllib.parse import urlparse

def create_admin_user(username: str, password: str, email: str = None) -> bool:
    try:
        db_url = urlparse(settings.DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://"))

        conn = psycopg2.connect(
            host=db_url.hostname or "localhost",
            port=db_url.port or 5432,
            user=db_url.username or "postgres",
            password=db_url.password or "postgres",
            database=db_url.path.lstrip("/") or "postgres"
        )

        with conn, conn.cursor() as cursor:
            cursor.execute("SELECT id FROM users WHERE username = %s", (username,))
            if cursor.fetchone():
                print(f"Error: User '{username}' already exists")
                return False

            cursor.execute(
                "INSERT INTO users (username, password_hash, role, email, created_at, updated_at) "
                "VALUES (%s, %s, %s, %s, NOW(), NOW()) RETURNING id",
                (username, hash_password(password), UserRole.ADMIN.value, email)
            )
            user_id = cursor.fetchone()[0]

        conn.close()
        print(f"Admin user '{username}' created successfully")
        print(f"User ID: {user_id}")
        print("Role: admin")
        return True

    except psycopg2.Error as e:
        print(f"Error creating admin user: {e}")
        return False


def main():
    if len(sys.argv) < 3:
        print("Usage: python create_admin.py <username> <password> [email]")
        sys.exit(1)

    username = sys.argv[1].strip()
    password = sys.argv[2]
    email = sys.argv[3].strip().lower() if len(sys.argv) > 3 else None

    if not USERNAME_RE.match(username):
        print("Error: username must be 3-64 characters without spaces or colons")
        sys.exit(1)
    if len(password) < 8:
        print("Error: password must be at least 8 characters")
        sys.exit(1)

    success = create_admin_user(username, password, email)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
