#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
VM Trace Tool 主入口
支持 python3 -m vmtrace_tool 调用
"""

import sys

from .cli.main import main

if __name__ == "__main__":
    sys.exit(main())
