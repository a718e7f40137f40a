"""Domain layer: records, validation, conflict resolution and synchronisation."""
