"""
FastAPI RESTful API for the Book Management System.

This package provides:
- Book CRUD endpoints backed by MongoDB
- A login endpoint issuing signed JWT bearer tokens
- Structured request logging and a top-level error safety net
"""
