import os
import subprocess
import sys

from dotenv import load_dotenv

REQUIRED_ENV_VARS = [
    "TELEGRAM_TEST_API_ID",
    "TELEGRAM_TEST_API_HASH",
    "TELEGRAM_TEST_PHONE",
    "TELEGRAM_BOT_USERNAME",
]

FLOWS = [
    "integration_tests/telegram_bot/chat_flows.py",
]


def _ensure_env() -> None:
    load_dotenv()
    missing = [var for var in REQUIRED_ENV_VARS if not os.environ.get(var)]
    if missing:
        raise SystemExit(
            "Cannot run Telegram integration tests. "
            f"Set the following env vars: {', '.join(sorted(missing))}"
        )


def main() -> None:
    _ensure_env()
    failures = []
    for flow in FLOWS:
        print(f"Running {flow}")
        returncode = subprocess.call([sys.executable, flow])
        if returncode != 0:
            print(f"[ERROR] {flow} exited with code {returncode}")
            failures.append(flow)
    if failures:
        raise SystemExit(f"{len(failures)} integration flow(s) failed: {', '.join(failures)}")


if __name__ == "__main__":
    main()
