"""Application layer – use cases, publishing, projection and reconciliation."""
