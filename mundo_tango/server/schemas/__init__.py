"""
API Schemas.

Request bodies and response models, grouped by domain. They share their field
definitions with the entity base classes so the API contract and the tables
cannot drift apart.
"""
