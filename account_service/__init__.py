"""Account management service for the Book Project."""
