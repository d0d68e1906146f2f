import os
import sys
import requests
from dotenv import load_dotenv
from sqlalchemy import create_engine, inspect

REQUIRED_TABLES = ['discounts', 'discount_conditions', 'discount_products']

def print_status(check_name: str, status: bool, details: str = ""):
    """
    Renders the status of a health check to the console.

    Args:
        check_name: Human-readable identifier for the check.
        status: Boolean indicating success or failure.
        details: Optional supplementary information (e.g., database URL, HTTP code).
    """
    color = "\033[92m[OK]\033[0m" if status else "\033[91m[FAIL]\033[0m"
    print(f"{color} {check_name:<30} {details}")

def run_healthcheck():
    """
    Verifies the backend environment: .env, configuration, database schema
    and, when a server is running, the health endpoint.
    """
    print("\n=== Discount Service Health Verification ===\n")

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    sys.path.append(base_dir)
    env_path = os.path.join(base_dir, ".env")

    # 1. .env is optional; defaults apply without it
    has_env = os.path.exists(env_path)
    print_status(".env file exists", True, env_path if has_env else "not found, using defaults")
    if has_env:
        load_dotenv(env_path)

    # 2. Configuration parses
    try:
        from config import DiscountConfig
        cfg = DiscountConfig.from_env()
        print_status("Configuration", True, f"policy={cfg.COMPOSITION_POLICY} tier={cfg.DEFAULT_MEMBERSHIP_TIER}")
    except ValueError as e:
        print_status("Configuration", False, str(e))
        sys.exit(1)

    # 3. Database reachable and initialized
    try:
        engine = create_engine(cfg.DATABASE_URL)
        tables = inspect(engine).get_table_names()
        missing = [t for t in REQUIRED_TABLES if t not in tables]
        print_status("Database schema initialized", not missing,
                     f"missing: {missing}" if missing else f"Found {len(tables)} tables")
    except Exception as e:
        print_status("Database connection", False, str(e))
        sys.exit(1)

    # 4. Running API, if any
    port = os.environ.get("PORT", "8000")
    try:
        r = requests.get(f"http://localhost:{port}/api/v1/health", timeout=5)
        print_status("API health endpoint", r.status_code == 200, f"HTTP {r.status_code}")
    except requests.exceptions.ConnectionError:
        print_status("API health endpoint", False, f"nothing listening on port {port}")

    print("\nHealth check completed.")

if __name__ == "__main__":
    run_healthcheck()
