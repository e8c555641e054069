# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Configuration for the POS API bridge

Values come from site config (``bench --site <site> set-config``):

    pos_api_base_url                        POS API address (http://127.0.0.1:7080)
    ebarimt_info_base_url                   public info API (https://api.ebarimt.mn/api)
    pos_api_timeout                         seconds per request (30)
    ebarimt_bridge_default_measure_unit     item unit when none is sent (ш)
    ebarimt_bridge_default_classification_code
    ebarimt_bridge_default_tax_product_code
"""

from dataclasses import dataclass, field
from urllib.parse import urlparse

import frappe
from frappe import _
from frappe.utils import cint

from ebarimt_bridge.api.client import DEFAULT_INFO_API_URL, DEFAULT_POS_API_URL
from ebarimt_bridge.api.http_client import DEFAULT_TIMEOUT
from ebarimt_bridge.core.bill_processor import DEFAULTS, ProcessorDefaults
from ebarimt_bridge.exceptions import ConfigError

SETTINGS_DOCTYPE = "POS API Settings"


@dataclass
class BridgeConfig:
    pos_api_base_url: str = DEFAULT_POS_API_URL
    info_api_base_url: str = DEFAULT_INFO_API_URL
    timeout: int = DEFAULT_TIMEOUT
    defaults: ProcessorDefaults = field(default_factory=lambda: DEFAULTS)

    def require_pos_api(self) -> str:
        """POS API base URL, or ConfigError when it is not an http(s) URL"""
        if not _is_http_url(self.pos_api_base_url):
            raise ConfigError(f"pos_api_base_url must be an http(s) URL, got {self.pos_api_base_url!r}")
        return self.pos_api_base_url


def _is_http_url(url: str) -> bool:
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def get_config(conf=None) -> BridgeConfig:
    """Read the bridge configuration from site config"""
    conf = conf if conf is not None else frappe.conf

    return BridgeConfig(
        pos_api_base_url=(conf.get("pos_api_base_url") or DEFAULT_POS_API_URL).rstrip("/"),
        info_api_base_url=(conf.get("ebarimt_info_base_url") or DEFAULT_INFO_API_URL).rstrip("/"),
        timeout=cint(conf.get("pos_api_timeout")) or DEFAULT_TIMEOUT,
        defaults=ProcessorDefaults(
            measure_unit=conf.get("ebarimt_bridge_default_measure_unit") or DEFAULTS.measure_unit,
            classification_code=conf.get("ebarimt_bridge_default_classification_code")
            or DEFAULTS.classification_code,
            tax_product_code=conf.get("ebarimt_bridge_default_tax_product_code") or DEFAULTS.tax_product_code,
        ),
    )


@dataclass
class ConfigIssue:
    """Configuration issue"""
    field: str
    message: str
    severity: str = "error"


@dataclass
class ConfigValidationResult:
    """Result of configuration validation"""
    is_valid: bool
    issues: list[ConfigIssue]

    def get_errors(self) -> list[ConfigIssue]:
        return [i for i in self.issues if i.severity == "error"]

    def get_warnings(self) -> list[ConfigIssue]:
        return [i for i in self.issues if i.severity == "warning"]


class ConfigValidator:
    """Validates bridge configuration"""

    def __init__(self, config: BridgeConfig | None = None):
        self.config = config or get_config()

    def validate(self) -> ConfigValidationResult:
        issues: list[ConfigIssue] = []

        issues.extend(self._validate_url("pos_api_base_url", self.config.pos_api_base_url))
        issues.extend(self._validate_url("ebarimt_info_base_url", self.config.info_api_base_url))
        issues.extend(self._validate_settings())

        is_valid = len([i for i in issues if i.severity == "error"]) == 0
        return ConfigValidationResult(is_valid=is_valid, issues=issues)

    def _validate_url(self, key: str, url: str) -> list[ConfigIssue]:
        if not _is_http_url(url):
            return [ConfigIssue(
                field=key,
                message=_("{0} must be an http(s) URL, got {1!r}").format(key, url),
                severity="error"
            )]
        return []

    def _validate_settings(self) -> list[ConfigIssue]:
        if not frappe.db.count(SETTINGS_DOCTYPE):
            return [ConfigIssue(
                field="settings",
                message=_("No POS API Settings found. Bills must carry posNo, districtCode and branchNo."),
                severity="warning"
            )]
        return []


def validate_config() -> ConfigValidationResult:
    return ConfigValidator().validate()


def get_config_status() -> dict:
    result = validate_config()
    return {
        "valid": result.is_valid,
        "errors": [{"field": i.field, "message": i.message} for i in result.get_errors()],
        "warnings": [{"field": i.field, "message": i.message} for i in result.get_warnings()]
    }


@frappe.whitelist()
def check_configuration():
    """Check bridge configuration status"""
    frappe.only_for(["System Manager", "Administrator"])
    return get_config_status()
