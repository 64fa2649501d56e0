"""Global pytest configuration."""

import os

# Set DATABASE_URL for tests before any imports
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
# Tests never talk to real providers
os.environ["LLM_API_KEY"] = ""
os.environ["GEOCODING_API_KEY"] = ""
