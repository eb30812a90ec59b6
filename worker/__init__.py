"""Background worker running the reminder dispatch sweep."""
