"""Domain layer: entities, enums, errors, value objects and ports."""
