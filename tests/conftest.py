import os

# Keep constants deterministic regardless of the developer's environment
os.environ.setdefault("TOKEN_EXPIRY_SAFETY_BUFFER_SECONDS", "30")
os.environ.setdefault("DEFAULT_CSRF_HEADER", "X-CSRF-Token")
