"""
__main__.py — Permite ejecutar content_publish como módulo.

    python -m content_publish publish --base main
"""

from content_publish.cli import main

if __name__ == "__main__":
    main()
