import os
from dataclasses import dataclass, fields

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when a required environment value is missing."""

    def __init__(self, name):
        super().__init__(f"{name} missing")
        self.name = name


# dataclass field -> environment variable
ENV_NAMES = {
    "pagespeed_api_key": "PAGESPEED_API_KEY",
    "gemini_api_key": "GEMINI_API_KEY",
    "gemini_model": "GEMINI_MODEL",
    "stripe_secret_key": "STRIPE_SECRET_KEY",
    "supabase_url": "SUPABASE_URL",
    "supabase_key": "SUPABASE_KEY",
    "crm_webhook_url": "ZOHO_WEBHOOK_URL",
    "public_base_url": "PUBLIC_SITE_URL",
    "report_price": "REPORT_PRICE",
    "report_currency": "REPORT_CURRENCY",
    "pagespeed_timeout": "PAGESPEED_TIMEOUT",
    "gemini_timeout": "GEMINI_TIMEOUT",
}

REQUIRED = (
    "pagespeed_api_key",
    "gemini_api_key",
    "stripe_secret_key",
    "supabase_url",
    "supabase_key",
)


@dataclass
class Settings:
    pagespeed_api_key: str = None
    gemini_api_key: str = None
    gemini_model: str = "gemini-2.0-flash"
    stripe_secret_key: str = None
    supabase_url: str = None
    supabase_key: str = None
    crm_webhook_url: str = None
    public_base_url: str = None
    report_price: float = 999
    report_currency: str = "inr"
    pagespeed_timeout: float = 60
    gemini_timeout: float = 30

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        if environ is None:
            load_dotenv()
            environ = os.environ
        values = {}
        for field in fields(cls):
            raw = (environ.get(ENV_NAMES[field.name]) or "").strip()
            if not raw:
                continue
            if field.type is float:
                try:
                    values[field.name] = float(raw)
                except ValueError:
                    raise ValueError(f"{ENV_NAMES[field.name]} must be a number, got {raw!r}")
            else:
                values[field.name] = raw
        return cls(**values)

    def missing(self, *names) -> list:
        names = names or REQUIRED
        return [ENV_NAMES[name] for name in names if not getattr(self, name)]

    def require(self, *names):
        missing = self.missing(*names)
        if missing:
            raise ConfigError(missing[0])
