"""Domain layer - enums and plain dataclasses independent of the database."""
