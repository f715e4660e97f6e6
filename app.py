import sys
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent / "src" / "credit_ledger"
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

from credit_ledger.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config.get("DEBUG", False))
