"""Local development entry point for the Lenco webhook service.

Usage:
    python run.py
    python3 run.py

The script detects if it's running outside the project virtualenv
and re-launches itself with the correct Python automatically. On start it
prints the webhook URL and warns about missing webhook or realtime config.
"""

import os
import sys
import subprocess

# ── Auto-activate virtualenv ──
_project_dir = os.path.dirname(os.path.abspath(__file__))
_venv_python = os.path.join(_project_dir, "venv", "bin", "python")

if os.path.exists(_venv_python) and os.path.realpath(sys.executable) != os.path.realpath(_venv_python):
    print("[run.py] Switching to venv Python...")
    try:
        sys.exit(subprocess.call([_venv_python] + sys.argv))
    except KeyboardInterrupt:
        sys.exit(0)

# ── Normal startup ──
from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from wathaci import create_app

app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5001))
    header = app.config["LENCO_SIGNATURE_HEADER"]

    print(f"[run.py] Lenco webhook: POST http://localhost:{port}/lenco/webhook ({header})")
    if not app.config.get("LENCO_WEBHOOK_SECRET"):
        print("[run.py] LENCO_WEBHOOK_SECRET is not set: every delivery will get 401.")
    if not app.config.get("SUPABASE_URL"):
        print("[run.py] SUPABASE_URL not set: notifications are stored but not pushed.")
    print("[run.py] Sign a test body with: flask sign-webhook payload.json")

    app.run(debug=True, host="0.0.0.0", port=port)
