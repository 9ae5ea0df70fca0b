"""Case manager backend."""
