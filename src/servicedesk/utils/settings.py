"""Persisted shop settings."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

from servicedesk.config import (
    AMC_EXPIRING_WINDOW_DAYS,
    DEFAULT_GST_RATE,
    SHOP_INFO,
    ShopInfo,
)
from servicedesk.utils.config_store import load_config_data, save_config_data


@dataclass(frozen=True)
class ShopSettings:
    """User-editable settings stored in config.json."""

    gst_rate: float = DEFAULT_GST_RATE
    amc_expiring_window_days: int = AMC_EXPIRING_WINDOW_DAYS
    exclude_weekends_from_leave: bool = True
    otp_validity_hours: Optional[float] = None
    otp_max_attempts: Optional[int] = None
    shop_name: str = SHOP_INFO.name
    shop_phone: str = SHOP_INFO.phone
    shop_address: str = SHOP_INFO.address
    shop_gstin: str = SHOP_INFO.gstin

    @property
    def shop_info(self) -> ShopInfo:
        return ShopInfo(
            name=self.shop_name,
            phone=self.shop_phone,
            address=self.shop_address,
            gstin=self.shop_gstin,
        )


def _as_float(value: Any, default: Optional[float]) -> Optional[float]:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: Optional[int]) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def load_shop_settings(config_path: Path) -> ShopSettings:
    """Load shop settings from disk, falling back to defaults per key."""
    data = load_config_data(config_path)
    defaults = ShopSettings()
    return ShopSettings(
        gst_rate=_as_float(data.get("gst_rate"), defaults.gst_rate),
        amc_expiring_window_days=_as_int(
            data.get("amc_expiring_window_days"), defaults.amc_expiring_window_days
        ),
        exclude_weekends_from_leave=bool(
            data.get("exclude_weekends_from_leave", defaults.exclude_weekends_from_leave)
        ),
        otp_validity_hours=_as_float(data.get("otp_validity_hours"), None),
        otp_max_attempts=_as_int(data.get("otp_max_attempts"), None),
        shop_name=str(data.get("shop_name", defaults.shop_name)),
        shop_phone=str(data.get("shop_phone", defaults.shop_phone)),
        shop_address=str(data.get("shop_address", defaults.shop_address)),
        shop_gstin=str(data.get("shop_gstin", defaults.shop_gstin)),
    )


def save_shop_settings(config_path: Path, settings: ShopSettings) -> None:
    """Save shop settings, keeping unrelated keys already in the file."""
    payload = load_config_data(config_path)
    payload.update(asdict(settings))
    save_config_data(config_path, payload)
