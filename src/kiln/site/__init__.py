"""Route assembly and output writing."""
