"""Domain Layer: value objects, errors and the ports the other layers depend on."""
