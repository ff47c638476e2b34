"""tellbot命令行模块。"""
