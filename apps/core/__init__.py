"""Cross-cutting HTTP plumbing: caller identity and error responses."""
