"""Domain services over the record store."""
