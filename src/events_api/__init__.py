"""
Event Tracker API package.

The FastAPI application lives in src.events_api.main; the list-query and
cursor-pagination engine in src.events_api.query and src.events_api.cursor.
"""
