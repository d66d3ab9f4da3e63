"""Application configuration."""

from __future__ import annotations

from dataclasses import dataclass

from servicedesk.version import __app_name__, __company__

APP_NAME = __app_name__
APP_DATA_DIRNAME = "ServiceDesk"
DB_FILENAME = "servicedesk.db"
LOGS_DIRNAME = "logs"
LOG_FILENAME = "app.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3
PDF_DIRNAME = "pdfs"
CONFIG_FILENAME = "config.json"

DEFAULT_GST_RATE = 18.0
AMC_EXPIRING_WINDOW_DAYS = 30
AMC_DEFAULT_PERIOD_MONTHS = 12
AMC_QUICK_RENEWAL_MONTHS = 12
AMC_DEFAULT_AMOUNT = 5000.0

OTP_LENGTH = 4
LEAVE_REASON_MIN_LENGTH = 5
UNPAID_LEAVE_TYPE = "unpaid"
FINAL_APPROVER_ROLE = "Admin"


@dataclass(frozen=True)
class ShopInfo:
    """Shop details printed on job cards and receipts."""

    name: str
    phone: str
    address: str
    gstin: str


SHOP_INFO = ShopInfo(
    name=__company__,
    phone="+91 98765 43210",
    address="12 MG Road, Bengaluru",
    gstin="29ABCDE1234F1Z5",
)


@dataclass(frozen=True)
class AppConfig:
    """Static configuration values for ServiceDesk."""

    app_name: str = APP_NAME
    organization_name: str = __company__
