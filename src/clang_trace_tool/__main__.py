#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Clang Trace Tool 主入口
支持 python3 -m clang_trace_tool 调用
"""

import sys

from .cli.main import main

if __name__ == "__main__":
    sys.exit(main())
