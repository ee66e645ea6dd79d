"""Configuration defaults and YAML-loaded settings."""
