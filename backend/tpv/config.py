# backend/tpv/config.py
from __future__ import annotations
import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Remote store. Unset means local-only mode (no persistence collaborator).
    SQLALCHEMY_DATABASE_URI = os.environ.get("TPV_DATABASE_URL") or None
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Create missing tables on startup (handy for sqlite; use migrations elsewhere)
    AUTO_CREATE_SCHEMA = os.environ.get("TPV_AUTO_CREATE_SCHEMA", "false").lower() == "true"

    TENANT_ID = os.environ.get("TPV_TENANT_ID", "demo")

    # ignore | warn | reject
    MISSING_REFERENCE_POLICY = os.environ.get("TPV_MISSING_REFERENCE_POLICY", "ignore")

    # Spanish hospitality defaults (IVA reducido 10%, IRPF 20%)
    DEFAULT_IVA_RATE = float(os.environ.get("TPV_DEFAULT_IVA_RATE", "0.10"))
    IRPF_RATE = float(os.environ.get("TPV_IRPF_RATE", "0.20"))
    QUICK_EXPENSE_IVA_RATE = 0.21

    # Forecasting oracle
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY") or None
    FORECAST_MODEL = os.environ.get("TPV_FORECAST_MODEL", "gpt-4o-mini")
    FORECAST_ALERT_DAYS = int(os.environ.get("TPV_FORECAST_ALERT_DAYS", "10"))

    LOG_LEVEL = os.environ.get("TPV_LOG_LEVEL", "INFO")

    # Seed the in-memory state with the demo catalogue when the store has none
    SEED_DEMO_DATA = os.environ.get("TPV_SEED_DEMO_DATA", "true").lower() == "true"
