"""
publishing/ — El pipeline de publicación.

Módulos:
- repo_identity.py → URL remoto → owner/repo + URL HTTPS canónico
- validator.py     → Validación del input (incluye ls-remote del base branch)
- workspace.py     → Clone superficial + branch de publicación
- build_runner.py  → install && build && script
- diff_detector.py → Status matrix de tres estados → ChangeSet
- git_ops.py       → Commit + push del ChangeSet
- pr_manager.py    → Crear y mergear el Pull Request
- pipeline.py      → Orquesta todo y devuelve un PublishOutcome
"""
