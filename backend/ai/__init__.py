"""Generation backend construction and failure classification."""
