import json
import os
from typing import Any, Dict, List, Mapping, Optional
from dbmirror.models.config import SyncConfig, DatabaseConfig, ConnectionPair
from loguru import logger

DEFAULT_PAIRS = "cmms,formy"

_INT_OPTIONS = ("max_batch_size", "max_parameters", "retry_times", "retry_interval")

_ENV_OPTIONS = {
    "SYNC_MAX_BATCH_SIZE": "max_batch_size",
    "SYNC_MAX_PARAMETERS": "max_parameters",
    "SYNC_BLOB_TIMEOUT": "blob_timeout",
    "SYNC_VERIFY_DATA": "verify_data",
    "SYNC_RETRY_TIMES": "retry_times",
    "SYNC_RETRY_INTERVAL": "retry_interval",
    "SYNC_METADATA_TABLE": "metadata_table",
}

def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")

def _coerce_options(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """校验并转换可选配置项"""
    options: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in _INT_OPTIONS:
            try:
                options[key] = int(value)
            except (TypeError, ValueError):
                raise ValueError(f"{key} must be an integer, got {value!r}")
        elif key == "blob_timeout":
            try:
                options[key] = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"blob_timeout must be a number, got {value!r}")
        elif key == "verify_data":
            options[key] = _parse_bool(value)
        elif key == "metadata_table":
            options[key] = str(value)

    for key in ("max_batch_size", "max_parameters"):
        if key in options and options[key] <= 0:
            raise ValueError(f"{key} must be positive, got {options[key]}")
    if options.get("blob_timeout", 0) < 0:
        raise ValueError(f"blob_timeout must not be negative, got {options['blob_timeout']}")
    if options.get("retry_interval", 0) < 0:
        raise ValueError(f"retry_interval must not be negative, got {options['retry_interval']}")
    return options

def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> SyncConfig:
    """
    从环境变量加载同步配置

    Args:
        environ: 环境变量映射，默认os.environ

    Returns:
        SyncConfig对象；未设置源库主机的库对保留host=None，由协调器跳过
    """
    env = os.environ if environ is None else environ

    try:
        target = DatabaseConfig(
            type="postgresql",
            host=env.get("POSTGRES_HOST", "127.0.0.1"),
            port=int(env.get("POSTGRES_PORT", "5432")),
            username=env.get("POSTGRES_SYNC_USER"),
            password=env.get("POSTGRES_SYNC_PASS"),
            database=None,
        )

        pairs: List[ConnectionPair] = []
        names = [n.strip() for n in env.get("SYNC_PAIRS", DEFAULT_PAIRS).split(",") if n.strip()]
        for name in names:
            prefix = f"FIREBIRD_{name.upper()}_"
            source = DatabaseConfig(
                type="firebird",
                host=env.get(prefix + "HOST") or None,
                port=int(env.get(prefix + "PORT", "3050")),
                username=env.get(prefix + "USER", "SYSDBA"),
                password=env.get(prefix + "PASS"),
                database=env.get(prefix + "DB"),
                charset=env.get(prefix + "CHARSET", "UTF8"),
            )
            pairs.append(ConnectionPair(
                name=name,
                source=source,
                target_database=env.get(f"POSTGRES_{name.upper()}_DB", name),
            ))
    except ValueError as e:
        raise ValueError(f"环境变量中的端口无效: {str(e)}")

    options = _coerce_options({
        option: env[var] for var, option in _ENV_OPTIONS.items() if var in env
    })
    config = SyncConfig(target=target, pairs=pairs, **options)
    logger.debug(f"Loaded {len(pairs)} pair(s) from environment: {', '.join(names)}")
    return config

def load_config(config_path: str) -> SyncConfig:
    """
    从JSON文件加载同步配置

    Args:
        config_path: 配置文件路径

    Returns:
        SyncConfig对象

    Raises:
        FileNotFoundError: 配置文件不存在
        ValueError: JSON格式错误或配置内容无效
    """
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"配置文件不存在: {config_path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"配置文件JSON格式错误: {str(e)}")

    try:
        target_data = dict(data['target'])
        target_data.setdefault('type', 'postgresql')
        target_data.setdefault('database', None)
        target = DatabaseConfig(**target_data)

        pairs = []
        for pair in data['pairs']:
            source_data = dict(pair['source'])
            source_data.setdefault('type', 'firebird')
            pairs.append(ConnectionPair(
                name=pair['name'],
                source=DatabaseConfig(**source_data),
                target_database=pair.get('target_database', pair['name'])
            ))
    except KeyError as e:
        raise ValueError(f"配置文件缺少必要字段: {str(e)}")
    except TypeError as e:
        raise ValueError(f"配置文件加载失败: {str(e)}")

    options = _coerce_options({k: v for k, v in data.items() if k not in ('target', 'pairs')})
    for field in options:
        logger.debug(f"使用配置文件中的 {field}: {options[field]}")

    return SyncConfig(target=target, pairs=pairs, **options)
