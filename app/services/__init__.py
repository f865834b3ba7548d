"""
Services layer - Business logic goes here.
Keep services focused on specific domains (issues, municipal pages, workflows, etc.)

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Services raise app.core.errors types; app.main maps them to HTTP responses
- Stores are reached only through app.repositories
"""
