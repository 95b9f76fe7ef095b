"""Quiz lifecycle service for the Nihongo e-learning platform."""
