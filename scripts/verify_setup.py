"""Verify that the setup is correct before running the browser."""
import os
import sys
import psycopg2
from dotenv import load_dotenv
from github_browser.config import Settings

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


def check_environment_variables():
    """Check configuration variables."""
    print("Checking environment variables...")

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        return False

    print("✅ Configuration is valid")
    print(f"   STORE_BACKEND: {settings.store_backend}")
    print(f"   PAGE_SIZE: {settings.page_size}")

    for var in ["POSTGRES_HOST", "POSTGRES_PORT", "POSTGRES_DB", "POSTGRES_USER"]:
        if os.getenv(var):
            print(f"   {var}: {os.getenv(var)}")

    return True


def check_database():
    """Check PostgreSQL connection and schema."""
    print("\nChecking database...")

    settings = Settings.from_env()
    if settings.store_backend == "memory":
        print("✅ In-memory store selected, no database needed")
        return True

    try:
        conn = psycopg2.connect(settings.connection_string)
    except psycopg2.Error as e:
        print(f"❌ Failed to connect to PostgreSQL: {e}")
        return False

    try:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = 'public' AND table_name = 'key_value_store'
        """)
        found = cursor.fetchone() is not None
        cursor.close()
    finally:
        conn.close()

    if found:
        print(f"✅ Connected to PostgreSQL at {settings.postgres_host}:{settings.postgres_port}, schema exists")
    else:
        print("❌ Database schema not found. Run 'python setup_postgres.py' first.")
    return found


def check_github_token():
    """Check the GitHub token; it is needed only for full profiles."""
    print("\nChecking GitHub token...")

    token = os.getenv("GITHUB_TOKEN")
    if not token:
        print("⚠️  GITHUB_TOKEN not set: anonymous rate limits apply and profiles are local-only")
        return True

    if token.startswith("ghp_") or token.startswith("github_pat_"):
        print("✅ GitHub token format looks valid")
        print(f"   Token prefix: {token[:10]}...")
    else:
        print("⚠️  Token format may be invalid (expected ghp_* or github_pat_*)")
    return True


def main():
    """Run all verification checks."""
    print("=" * 60)
    print("GitHub Browser - Setup Verification")
    print("=" * 60)

    checks = [
        ("Environment Variables", check_environment_variables),
        ("Database", check_database),
        ("GitHub Token", check_github_token),
    ]

    results = {}
    for name, check_func in checks:
        try:
            results[name] = check_func()
        except Exception as e:
            print(f"❌ {name} check failed with exception: {e}")
            results[name] = False

    print("\n" + "=" * 60)
    print("Verification Summary")
    print("=" * 60)

    for name, passed in results.items():
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"{status}: {name}")

    if all(results.values()):
        print("\n✅ All checks passed!")
        print("\nNext steps:")
        print("  python browse_github.py home")
        sys.exit(0)
    else:
        print("\n❌ Some checks failed. Please fix the issues above.")
        print("\nCommon solutions:")
        print("  - Create schema: python setup_postgres.py")
        print("  - Or run without a database: export STORE_BACKEND=memory")
        sys.exit(1)


if __name__ == "__main__":
    main()
