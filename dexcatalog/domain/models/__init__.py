"""Domain models: the Creature entity and catalog value objects."""
