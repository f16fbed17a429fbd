"""Row-level database queries. Every function takes an open connection."""
