"""
启动开发服务器

    python -m ytree --host 0.0.0.0 --port 8000
"""

import argparse

import uvicorn

from ytree.app import create_app
from ytree.config import AppSettings, load_settings


def main(argv=None):
    parser = argparse.ArgumentParser(prog="ytree", description="树结构管理应用")
    parser.add_argument("--host", default="127.0.0.1", help="监听地址")
    parser.add_argument("--port", type=int, default=8000, help="监听端口")
    parser.add_argument("--config", default=None, help="YAML 配置文件路径")
    args = parser.parse_args(argv)

    settings = load_settings(AppSettings, config_path=args.config)
    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
