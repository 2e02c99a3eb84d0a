"""Password sources for mail server authentication."""
