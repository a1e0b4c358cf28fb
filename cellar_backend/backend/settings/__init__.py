# backend/settings/__init__.py
"""
PATH: backend/settings/__init__.py

Nothing is imported here. Pick a module with DJANGO_SETTINGS_MODULE:
- backend.settings.dev   local work and the test suite (pyproject pytest config)
- backend.settings.prod  deployments; refuses to boot on unsafe config
"""
