"""
Configuration, database, Celery and startup wiring.
"""
