"""Module entry point for python -m servicedesk."""

from __future__ import annotations

from servicedesk.app import main


if __name__ == "__main__":
    raise SystemExit(main())
