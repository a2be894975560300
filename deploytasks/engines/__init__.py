"""Argument parsing, provider interfaces, build info and explorer client."""
