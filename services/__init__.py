"""Business operations shared by the blueprints and scripts."""
