from __future__ import annotations

from kavow.main import main

if __name__ == "__main__":
    raise SystemExit(main())
