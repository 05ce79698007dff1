
import os


def _hourly(start: str, end: str, description: str) -> dict:
    return {"startTime": start, "endTime": end, "maxCapacity": 1, "price": 0, "description": description}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///local.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET = os.getenv("JWT_SECRET")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "24"))

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "true").lower() in ("true", "1", "t")
    MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "false").lower() in ("true", "1", "t")
    MAIL_USERNAME = os.getenv("EMAIL_USER")
    MAIL_PASSWORD = os.getenv("EMAIL_PASS")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", os.getenv("EMAIL_USER", "no-reply@cncworldtour.com"))
    NOTIFICATIONS_ENABLED = os.getenv("NOTIFICATIONS_ENABLED", "true").lower() in ("true", "1", "t")

    RATE_LIMIT_WINDOW = int(os.getenv("RATE_LIMIT_WINDOW", "60"))
    RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "12"))

    # Template used when a (restaurant, day) is first queried.
    DEFAULT_TIME_SLOTS = [
        _hourly("09:00", "10:00", "Morning"),
        _hourly("10:00", "11:00", "Morning"),
        _hourly("11:00", "12:00", "Lunch"),
        _hourly("12:00", "13:00", "Lunch"),
        _hourly("13:00", "14:00", "Lunch"),
        _hourly("14:00", "15:00", "Afternoon"),
        _hourly("15:00", "16:00", "Afternoon"),
        _hourly("16:00", "17:00", "Afternoon"),
        _hourly("17:00", "18:00", "Dinner"),
        _hourly("18:00", "19:00", "Dinner"),
        _hourly("19:00", "20:00", "Dinner"),
        _hourly("20:00", "21:00", "Dinner"),
    ]
