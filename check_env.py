#!/usr/bin/env python3
"""Helper script to check and create the .env file for Supabase and Mapbox configuration."""

from pathlib import Path
import os

TEMPLATE = """# Supabase Configuration (record store and realtime change feeds)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
SWEEPER_SUPABASE_URL=https://your-project-id.supabase.co
SWEEPER_SUPABASE_KEY=your-service-role-key-here

# Mapbox (directions, optimization and geocoding)
SWEEPER_MAPBOX_ACCESS_TOKEN=pk.your-mapbox-token
# SWEEPER_ROUTING_PROFILE=driving

# Service area (lat,lng) and radius in miles
# SWEEPER_SERVICE_AREA_CENTER=27.5306,-99.4803
# SWEEPER_SERVICE_AREA_RADIUS_MILES=25

# API Configuration
SWEEPER_API_PREFIX=/api
# SWEEPER_FRONTEND_ALLOWED_ORIGINS - Leave commented to use defaults
# JSON array format: ["http://localhost:5173","http://127.0.0.1:5173"]
# Or comma-separated: http://localhost:5173,http://127.0.0.1:5173
"""

SECRET_KEYS = ("SWEEPER_SUPABASE_KEY", "SWEEPER_MAPBOX_ACCESS_TOKEN")


def _mask(line: str) -> str:
    name, _, value = line.partition("=")
    value = value.strip()
    if name.strip() in SECRET_KEYS and len(value) > 20:
        return f"{name}={value[:12]}...{value[-6:]}"
    return line


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Sweeper Environment Variables Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        print("Creating template .env file...")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created .env file at: {env_file}")
        print()
        print("⚠️  Please edit .env and add your Supabase and Mapbox credentials!")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    for name in ("SWEEPER_SUPABASE_URL", *SECRET_KEYS):
        if os.getenv(name):
            print(f"✅ {name} set in environment")
        else:
            print(f"ℹ️  {name} not in environment (may come from .env)")
    print()

    print("Testing config loading...")
    try:
        import sys
        sys.path.insert(0, str(project_root / "src"))
        from sweeper.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    checks = {
        "Supabase URL": settings.supabase_url,
        "Supabase key": settings.supabase_key,
        "Mapbox token": settings.mapbox_access_token,
    }
    missing = [label for label, value in checks.items() if not value]
    for label, value in checks.items():
        print(f"{'✅' if value else '❌'} {label}")
    print()
    print("=" * 60)
    if missing:
        print(f"❌ ERROR: missing {', '.join(missing)}")
        print("Make sure variables start with SWEEPER_ prefix and restart the backend after editing .env")
    else:
        print("✅ SUCCESS: Supabase and Mapbox are configured!")
    print("=" * 60)


if __name__ == "__main__":
    main()
