"""Router factories."""
