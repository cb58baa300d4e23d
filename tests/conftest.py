import os

# Environment is read once at import; keep test runs on the quiet logging tier
os.environ.setdefault("ENVIRONMENT", "test")
