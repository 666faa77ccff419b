"""斗地主联机对局服务 - 主入口"""

import argparse
import logging

import uvicorn

from landlord.config import ServerConfig
from landlord.web.server import create_app


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="斗地主联机对局服务")
    parser.add_argument("--host", default=None, help="监听地址 (默认 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="监听端口 (默认 5179)")
    parser.add_argument("--bidding-seconds", type=float, default=None, help="叫分超时秒数 (默认10)")
    parser.add_argument("--play-seconds", type=float, default=None, help="出牌超时秒数 (默认30)")
    parser.add_argument("--max-redeals", type=int, default=None, help="三人都不叫时最多重发次数 (默认3)")
    parser.add_argument("--log-level", default=None, help="日志级别 (默认 INFO)")
    return parser.parse_args(argv)


def main(argv=None):
    """命令行入口：环境变量为默认值，命令行参数优先"""
    args = parse_args(argv)
    config = ServerConfig().with_overrides(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        bidding_seconds=args.bidding_seconds,
        play_seconds=args.play_seconds,
        max_redeals=args.max_redeals,
    )

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info("斗地主对局服务启动 %s:%d", config.host, config.port)

    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
