"""Testing support – in-memory doubles and pytest fixtures."""
