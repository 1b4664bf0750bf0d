"""World Pest Day registration, video submission and certificate portal."""
