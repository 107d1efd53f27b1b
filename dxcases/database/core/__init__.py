"""Service functions that connect the API router with the DAOs."""
