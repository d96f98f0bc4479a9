"""Find the nearest police, fire and hospital facilities ranked by travel time."""
