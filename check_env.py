#!/usr/bin/env python3
"""Helper script to check and create the .env file for the dispatch hub."""

from pathlib import Path
import os
import sys

SECRET_KEYS = ("DISPATCH_SUPABASE_KEY", "DISPATCH_RELAY_API_KEY")

TEMPLATE = """# Record store: "memory" (default, data is lost on restart) or "supabase"
DISPATCH_RECORD_STORE=memory
# Get these from: https://supabase.com/dashboard -> Your Project -> Settings -> API
DISPATCH_SUPABASE_URL=https://your-project-id.supabase.co
DISPATCH_SUPABASE_KEY=your-service-role-key-here

# API Configuration
DISPATCH_API_PREFIX=/api
DISPATCH_WEBSOCKET_PATH=/ws
# JSON array or comma-separated, e.g. http://localhost:5173,http://127.0.0.1:5173
# DISPATCH_FRONTEND_ALLOWED_ORIGINS=*
# DISPATCH_TIMEZONE=America/Sao_Paulo

# Data Paths
DISPATCH_DATA_ROOT=./data
DISPATCH_STATIC_ROOT=./public

# WhatsApp gateway (optional - leave empty to disable message relay)
# DISPATCH_RELAY_BASE_URL=http://localhost:3001
# DISPATCH_RELAY_API_KEY=
# DISPATCH_RELAY_SESSION=default
"""


def _mask(line: str) -> str:
    name, _, value = line.partition("=")
    if name.strip() in SECRET_KEYS and len(value.strip()) > 20:
        value = value.strip()
        return f"{name}={value[:20]}...{value[-10:]}"
    return line


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Dispatch hub environment checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        print("Creating template .env file...")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created .env file at: {env_file}")
        print("⚠️  Edit .env before starting the server.")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    print("Testing config loading...")
    print()
    try:
        sys.path.insert(0, str(project_root / "src"))
        from dispatch_hub.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    print(f"Record store: {settings.record_store}")
    if settings.record_store == "supabase":
        if settings.supabase_url and settings.supabase_key:
            print("✅ Supabase is configured")
        else:
            print("❌ DISPATCH_RECORD_STORE=supabase but DISPATCH_SUPABASE_URL / DISPATCH_SUPABASE_KEY are missing")

    if settings.relay_base_url:
        print(f"✅ WhatsApp gateway: {settings.relay_base_url} (session '{settings.relay_session}')")
    else:
        print("ℹ️  WhatsApp gateway not configured, message relay disabled")

    print(f"Timezone for today's deliveries: {settings.timezone or os.environ.get('TZ') or 'server local time'}")


if __name__ == "__main__":
    main()
