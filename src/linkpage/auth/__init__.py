"""Password hashing, token handling and auth dependencies."""
