"""HTTP API blueprints for the IDM user service."""
