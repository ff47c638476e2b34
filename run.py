"""
本地直接启动 tellbot 的入口脚本。

用法示例（在项目根目录运行）：

    python run.py onboard
    python run.py run -v
    python run.py say --nick alice --target "#test" ".tell bob hello"
    python run.py status
"""

from tellbot.cli.commands import app


if __name__ == "__main__":
    app()
