import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("ADMIN_EMAIL_DOMAIN", "dreamer.com")
os.environ.setdefault("DEFAULT_PAGE_SIZE", "10")
