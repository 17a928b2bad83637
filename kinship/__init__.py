"""kinship: people, parent-child relationships, and family tree assembly."""
