"""
Item Reviews API package.

Modules:
- config: environment-driven settings
- db: PostgreSQL connection pooling + query helpers
- tables: table definitions and constraints
- crud: data-access functions for users, items, reviews and comments
- auth_utils: password hashing and JWT auth helpers
- schemas: Pydantic models for the REST API
- main: FastAPI application and routes
- seed: demo data
"""
