"""Infrastructure layer: configuration, logging and database wiring."""
