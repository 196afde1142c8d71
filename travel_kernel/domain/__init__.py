"""Pure domain helpers shared by the travel expense packages."""
