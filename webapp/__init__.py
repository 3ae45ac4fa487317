"""Read-only HTTP browser over stored season stats."""
