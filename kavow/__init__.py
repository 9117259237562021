"""kavow: a resumable macOS workstation bootstrapper (Python-first, state-driven).

Core design goals:
- Stage-based and resumable
- Idempotent installs
- Declarative app/category/language catalogs
- Partial failures recorded, never fatal for a batch
- Centralized logging
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
