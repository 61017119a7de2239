import os
import sys

ROOT = os.path.dirname(os.path.abspath(__file__))

# 未安装时也能导入dbmirror，测试目录中的fakes可直接导入
for path in (os.path.join(ROOT, "tests"), ROOT):
    if path not in sys.path:
        sys.path.insert(0, path)
