"""External AI providers used by document extraction."""
