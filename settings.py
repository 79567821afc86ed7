import os
from decouple import config, Csv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Local SQLite unless DATABASE_URL points elsewhere
DATABASE_URL = config("DATABASE_URL", default=f"sqlite:///{os.path.join(BASE_DIR, 'database.db')}")

# JWT
SECRET_KEY = config("SECRET_KEY", default="dev-secret-change-me")
ALGORITHM = config("ALGORITHM", default="HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = config("ACCESS_TOKEN_EXPIRE_MINUTES", default=60 * 24, cast=int)

# OpenAI
OPENAI_API_KEY = config("OPENAI_API_KEY", default="")
OPENAI_MODEL = config("OPENAI_MODEL", default="gpt-4o")

# Stripe
STRIPE_SECRET_KEY = config("STRIPE_SECRET_KEY", default="")
STRIPE_WEBHOOK_SECRET = config("STRIPE_WEBHOOK_SECRET", default="")
SUBSCRIPTION_PRICE_CENTS = config("SUBSCRIPTION_PRICE_CENTS", default=2900, cast=int)
SUBSCRIPTION_CURRENCY = config("SUBSCRIPTION_CURRENCY", default="usd")

# Credits
FREE_PLAN_CREDITS = config("FREE_PLAN_CREDITS", default=100, cast=int)
PRO_PLAN_CREDITS = config("PRO_PLAN_CREDITS", default=3000, cast=int)

CORS_ALLOW_ORIGINS = config("CORS_ALLOW_ORIGINS", default="*", cast=Csv())
