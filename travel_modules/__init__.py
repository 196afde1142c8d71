"""Domain modules for German business-travel expense claims."""
