"""Repository interfaces and their storage backends."""
