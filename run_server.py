# run_server.py
import os, sys, traceback, faulthandler
from pathlib import Path

# crash logs go next to the exe when frozen
BASE_DIR = Path(sys.executable).resolve().parent if getattr(sys, "frozen", False) else Path(__file__).resolve().parent
LOG_FILE = BASE_DIR / "ceksenet_crash.log"

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5001"))

faulthandler.enable(open(LOG_FILE, "a", encoding="utf-8"))


def log(msg: str):
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(msg + "\n")


try:
    log("\n--- START ---")
    log(f"exe={sys.executable}")
    log(f"cwd={os.getcwd()}")
    log(f"base_dir={BASE_DIR}")
    log(f"listen={HOST}:{PORT}")

    import uvicorn

    # app import after the crash log is ready
    from main import app

    uvicorn.run(app, host=HOST, port=PORT, reload=False, log_level="info")

except Exception:
    err = traceback.format_exc()
    log(err)
    print(err)
    if sys.stdin and sys.stdin.isatty():
        input("\nPress Enter to exit...")
