"""
tellbot模块的入口点

当使用 `python -m tellbot` 命令运行tellbot时，会执行此文件。
它导入并启动CLI应用程序。
"""

from tellbot.cli.commands import app

if __name__ == "__main__":
    app()
