# approvalctl/core/config.py
"""
配置与输入文件加载
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger("approvalflow.cli")

# ------------------------------
# 常量定义
# ------------------------------

STATE_DIR = Path(".approvalflow")
CONFIG_FILE = STATE_DIR / "config.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
OUTPUT_FORMATS = ("table", "json")


class ConfigError(ValueError):
    pass


@dataclass
class CLIConfig:
    log_level: str = "WARNING"
    output: str = "table"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CLIConfig':
        known = {"log_level", "output"}
        for key in data:
            if key not in known:
                logger.warning("Ignoring unknown config key: %s", key)

        log_level = str(data.get("log_level", cls.log_level)).upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")
        output = str(data.get("output", cls.output)).lower()
        if output not in OUTPUT_FORMATS:
            raise ConfigError(f"output must be one of {', '.join(OUTPUT_FORMATS)}, got {output!r}")
        return cls(log_level=log_level, output=output)


def load_config(path: Optional[Path] = None) -> CLIConfig:
    """
    读取 CLI 配置。未显式指定且默认文件不存在时使用默认值。
    """
    config_path = Path(path) if path else CONFIG_FILE
    if not config_path.exists():
        if path:
            raise ConfigError(f"Config file not found: {config_path}")
        return CLIConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {config_path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")
    return CLIConfig.from_dict(data)


def load_document(path: Path) -> Any:
    """读取 JSON 或 YAML 文件（YAML 是 JSON 的超集，统一用 safe_load）"""
    text = Path(path).read_text(encoding="utf-8")
    if Path(path).suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def unwrap_definition(document: Any) -> Any:
    """流程文件可以是裸定义，也可以是带 name/version 的 ApprovalFlow 外层结构"""
    if isinstance(document, dict) and "definition" in document and "stages" not in document:
        return document["definition"]
    return document
