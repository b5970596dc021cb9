"""
文件路径：docsign/processors/__init__.py

说明：
- 合成流程使用的处理器子包：
  - images.py（图片解码与 PNG 归一化）
  - engines/{pymupdf.py, reportlab.py}（两种渲染引擎）
"""

from typing import List

__all__: List[str] = []
