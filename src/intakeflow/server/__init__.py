"""HTTP surface for parsing, validating, laying out and running flows."""
