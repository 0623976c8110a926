"""Configuration loading: YAML file, .env file and environment variables."""
