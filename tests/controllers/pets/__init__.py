"""Handler modules for paths below /pets."""
