class DatabaseError(Exception):
    """Custom exception for database operations."""
    pass
