"""Direct Gemini connectivity check.

Usage:
  python3 check_gemini_connection.py
"""

import sys

from ai_gateway import GeminiGateway
from config import Config
from errors import UpstreamError


def main(gateway=None) -> int:
    config = Config.from_env()
    print(f"Model: {config.gemini_model}")
    if gateway is None:
        if not config.gemini_api_key:
            print("ERROR: GEMINI_API_KEY is not set.")
            return 1
        gateway = GeminiGateway.from_config(config)

    try:
        output_text = gateway.generate("Reply with exactly OK")
    except UpstreamError as exc:
        print(f"ERROR: Gemini request failed: {exc.message}")
        return 2

    print(f"Output: {output_text!r}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
