from __future__ import annotations

import sys

from sdlt_risk.cli import main as cli_main
from sdlt_risk.exceptions import SdltError, ValidationError


def main() -> None:
    try:
        cli_main()
    except ValidationError as exc:
        print("Error: validation failed.", file=sys.stderr)
        for message in exc.messages:
            print(f"  - {message}", file=sys.stderr)
        sys.exit(1)
    except SdltError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print()
        sys.exit(130)


if __name__ == "__main__":
    main()
