"""
Content Publish — Publica cambios de contenido como Pull Requests.

Este paquete contiene todo el pipeline de publicación:
- publishing/  → Validación, workspace, build, diff, commit/push y PRs
- utils/       → Utilidades compartidas (logging)

Uso:
    python -m content_publish publish --script "npm run fetch-content"
    python -m content_publish config --show
"""

__version__ = "1.0.0"
