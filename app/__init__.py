"""
Multi-Tenant Task Manager

Tenants, users, projects and tasks behind a FastAPI service, with
role-scoped authorization and strict tenant isolation.
"""

__version__ = "1.0.0"
