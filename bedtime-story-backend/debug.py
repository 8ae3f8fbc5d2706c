import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv


def diagnose(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """Report lines describing the configured GEMINI_API_KEY, never the full key."""
    if environ is None:
        # Force reload of the .env file
        load_dotenv(override=True)
        environ = os.environ

    key = environ.get("GEMINI_API_KEY")

    lines = ["", "--- DIAGNOSTIC REPORT ---"]
    if not key:
        lines.append("❌ FAILURE: Python cannot find 'GEMINI_API_KEY'.")
        lines.append("Check: Did you name the file '.env' exactly? Is it in the same folder?")
    elif not key.startswith("AIza"):
        lines.append(f"⚠️ WARNING: Your key looks weird. It starts with '{key[:4]}...'")
        lines.append("Google API keys normally start with 'AIza'. Check for typos.")
    else:
        lines.append("✅ SUCCESS: Key found!")
        lines.append(f"Key loaded: {key[:6]}... (hidden)")
    lines.append("-------------------------")
    lines.append("")
    return lines


def main():
    print("\n".join(diagnose()))


if __name__ == "__main__":
    main()
