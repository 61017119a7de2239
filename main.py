import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional
from loguru import logger
from dbmirror.config.loader import load_config, load_config_from_env
from dbmirror.errors import AggregateRunError
from dbmirror.services.sync import SyncRunCoordinator

def setup_logging() -> None:
    # 移除默认的处理器
    logger.remove()

    level = os.environ.get("SYNC_LOG_LEVEL", "INFO")

    # 添加文件处理器
    logger.add(
        "sync.log",
        rotation="500 MB",
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )

    # 添加控制台处理器
    logger.add(
        sys.stdout,
        level=os.environ.get("SYNC_CONSOLE_LOG_LEVEL", "DEBUG"),
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <level>{message}</level>"
    )

def parse_args(argv: List[str]) -> Optional[str]:
    """解析命令行参数，返回配置文件路径（未指定时使用环境变量）"""
    for arg in argv:
        if arg.startswith("config="):
            # 去除可能存在的引号
            config_path = arg.split("=", 1)[1].strip("'\"")
            logger.debug(f"Parsed config path: {config_path}")
            return config_path
    return None

async def main(argv: List[str]) -> int:
    config_path = parse_args(argv)
    if config_path:
        config_file = Path(config_path)
        logger.info(f"Loading configuration from: {config_file.absolute()}")
        config = load_config(str(config_file))
    else:
        logger.info("Loading configuration from environment")
        config = load_config_from_env()

    coordinator = SyncRunCoordinator(config)
    try:
        result = await coordinator.run()
        logger.success(result.message)
        return 0
    except AggregateRunError as e:
        logger.error(f"Sync failed: {str(e)}")
        logger.error(f"Totals: {e.context}")
        return 1
    finally:
        await coordinator.close()

if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(main(sys.argv[1:])))
