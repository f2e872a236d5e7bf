# Services are imported by module; nothing is loaded eagerly here.
