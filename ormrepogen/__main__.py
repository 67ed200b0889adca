"""Entry point: python -m ormrepogen

Parses the package, generates <type>_base_repo.py for each requested type.
"""

from __future__ import annotations

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
