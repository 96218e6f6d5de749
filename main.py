from __future__ import annotations

import sys
from pathlib import Path


def main() -> int:
    # Ensure "src" is importable when running from repo root
    root_dir = Path(__file__).resolve().parent
    src_dir = root_dir / "src"
    if str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))

    from ytdlimport.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
