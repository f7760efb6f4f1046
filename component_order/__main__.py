"""Entry point for ``python -m component_order``."""

from .main import main

if __name__ == "__main__":
    raise SystemExit(main())
