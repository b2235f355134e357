"""Database initialization script - creates tables, an optional client account
and prints an ADMIN_PASSWORD_HASH value."""
import asyncio
import getpass
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from license_server.database import engine, Base, AsyncSessionLocal
from license_server.exceptions import DuplicateAccount, ValidationError
from license_server.services.auth_service import AuthService
from license_server.utils.security import hash_password
import license_server.models  # noqa: F401


async def create_tables():
    """Create all database tables."""
    print("📦 Creating database tables...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    print("✅ Tables created successfully")


async def create_client_account(name: str, email: str, password: str):
    """Create a client portal account."""
    print(f"\n👤 Creating client account: {email}")

    async with AsyncSessionLocal() as session:
        try:
            client = await AuthService(session).register_client(name, email, password)
        except DuplicateAccount:
            print("⚠️  Client account already exists")
            return
        except ValidationError as e:
            print(f"❌ {e.message}")
            return

    print("✅ Client account created")
    print(f"   ID: {client.id}")
    print(f"   Email: {client.email}")


def print_admin_password_hash(password: str):
    """Print a bcrypt hash suitable for ADMIN_PASSWORD_HASH."""
    print("\n🔑 Add this to your .env:")
    print(f"   ADMIN_PASSWORD_HASH={hash_password(password)}")


async def main():
    """Main initialization function."""
    print("🚀 License Server - Database Initialization")
    print("=" * 60)

    if engine is None:
        print("❌ DATABASE_URL is not set")
        sys.exit(1)

    response = input("\n⚠️  Create database tables? (yes/no): ")
    if response.lower() not in ('yes', 'y'):
        print("❌ Initialization cancelled")
        return

    try:
        await create_tables()

        client_email = input("\n📧 Client account email (leave empty to skip): ").strip()
        if client_email:
            client_name = input("   Client name: ").strip() or client_email.split("@")[0]
            client_password = getpass.getpass("   Client password: ")
            await create_client_account(client_name, client_email, client_password)

        admin_password = getpass.getpass("\n🔐 Admin password to hash (leave empty to skip): ")
        if admin_password:
            print_admin_password_hash(admin_password)

        print("\n" + "=" * 60)
        print("✅ Database initialized successfully!")
        print("\nNext steps:")
        print("  1. Stamp the schema: alembic stamp head")
        print("  2. Start the app: uvicorn license_server.main:app --reload")

    except Exception as e:
        print(f"\n❌ Initialization failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
